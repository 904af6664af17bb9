"""
Shared fixtures: wire-format order/transaction factories and a seeded
in-memory gateway.
"""
import pytest

from adapters.memory import InMemoryStoreGateway

STORE_ID = "store-1"


def order_dict(order_id="o-1", status="PENDING", **overrides):
    data = {
        "id": order_id,
        "status": status,
        "customerName": "Somchai",
        "customerAdds": "1 Silom Rd",
        "customerLineId": "line-" + order_id,
        "productInfo": [
            {"productId": "p-1", "name": "Latte", "price": 50.0, "quantity": 2},
        ],
        "createdAt": "2024-06-01T09:00:00.000Z",
        "updatedAt": "2024-06-01T09:00:00.000Z",
    }
    data.update(overrides)
    return data


def transaction_dict(txn_id="t-1", order_id="o-1", confirmed=False, method="BANK_TRANSFER", **overrides):
    data = {
        "id": txn_id,
        "orderId": order_id,
        "totalAmount": 100.0,
        "paymentMethod": method,
        "isConfirmed": confirmed,
        "slip": [
            {
                "id": "s-" + txn_id,
                "amount": 100.0,
                "isConfirmed": False,
                "transDate": "2024-06-01",
                "transTime": "10:00",
                "sender": {"displayName": "Somchai", "name": "Somchai", "account": {"value": "123"}},
                "receiver": {"displayName": "Shop", "name": "Shop", "account": {"value": "999"}},
                "sendingBank": "004",
                "receivingBank": "014",
            }
        ],
        "createdAt": "2024-06-01T10:00:00.000Z",
        "updatedAt": "2024-06-01T10:00:00.000Z",
    }
    data.update(overrides)
    return data


@pytest.fixture
def store_id():
    return STORE_ID


@pytest.fixture
def gateway():
    """
    o-1 PENDING with a pending transfer, o-2 PENDING without a transaction,
    o-3 WAITING_DELIVERY with a confirmed transaction, o-4 CANCELLED with a
    rejected transaction.
    """
    gw = InMemoryStoreGateway()
    gw.add_order(STORE_ID, order_dict("o-1", "PENDING"))
    gw.add_order(STORE_ID, order_dict("o-2", "PENDING"))
    gw.add_order(STORE_ID, order_dict("o-3", "WAITING_DELIVERY"))
    gw.add_order(STORE_ID, order_dict("o-4", "CANCELLED"))
    gw.add_transaction(STORE_ID, transaction_dict("t-1", "o-1"))
    gw.add_transaction(STORE_ID, transaction_dict("t-3", "o-3", confirmed=True))
    gw.add_transaction(STORE_ID, transaction_dict("t-4", "o-4", method="REJECTED"))
    return gw


@pytest.fixture
def make_order():
    return order_dict


@pytest.fixture
def make_transaction():
    return transaction_dict
