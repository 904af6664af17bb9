"""
Storefront Admin - Main Entry Point

Walks through the reconciliation workflow for one store:
- Load orders and payment transactions
- List the "not verified" transfers
- Stage and confirm a payment decision
- Edit an order

Runs against the REST backend when STORE_API_URL, STORE_API_TOKEN and
STORE_ID are set in the environment (or .env), otherwise against an
in-memory store seeded with demo data.
"""
import os
from dotenv import load_dotenv

from adapters.memory import InMemoryStoreGateway
from adapters.store_api.client import RestStoreGateway
from orchestrator.reconciliation import ReconciliationEngine
from services.order_store import ORDER_VIEWS, ALL_VIEW
from services.report import store_stats
from services.transaction_store import NOT_VERIFIED_VIEW

DEMO_STORE_ID = "demo-store"


def _demo_slip(slip_id: str, amount: float, sender: str) -> dict:
    return {
        "id": slip_id,
        "amount": amount,
        "isConfirmed": False,
        "transDate": "2024-06-01",
        "transTime": "10:15",
        "sender": {"displayName": sender, "name": sender, "account": {"value": "xxx-x-x1234-x"}},
        "receiver": {"displayName": "Demo Store", "name": "Demo Store", "account": {"value": "xxx-x-x9876-x"}},
        "sendingBank": "004",
        "receivingBank": "014",
    }


def demo_gateway(store_id: str = DEMO_STORE_ID) -> InMemoryStoreGateway:
    """In-memory gateway with a handful of orders in every state."""
    gateway = InMemoryStoreGateway()
    latte = {"productId": "p-latte", "name": "Iced Latte", "price": 65.0, "quantity": 2}
    cake = {"productId": "p-cake", "name": "Chocolate Cake", "price": 120.0, "quantity": 1}

    orders = [
        ("o-1001", "PENDING", "Somchai P.", [latte]),
        ("o-1002", "PENDING", "Anong K.", [latte, cake]),
        ("o-1003", "WAITING_DELIVERY", "Malee S.", [cake]),
        ("o-1004", "IN_DELIVERY", "Niran T.", [latte]),
        ("o-1005", "FINISHED", "Pim W.", [latte, cake]),
    ]
    for order_id, status, name, lines in orders:
        gateway.add_order(store_id, {
            "id": order_id,
            "status": status,
            "customerName": name,
            "customerAdds": "99 Sukhumvit Rd, Bangkok",
            "customerLineId": "line-" + order_id,
            "productInfo": lines,
            "createdAt": "2024-06-01T09:00:00.000Z",
        })

    gateway.add_transaction(store_id, {
        "id": "t-1001", "orderId": "o-1001", "totalAmount": 130.0,
        "paymentMethod": "BANK_TRANSFER", "isConfirmed": False,
        "slip": [_demo_slip("s-1", 130.0, "Somchai P.")],
        "createdAt": "2024-06-01T10:16:00.000Z",
    })
    gateway.add_transaction(store_id, {
        "id": "t-1002", "orderId": "o-1002", "totalAmount": 250.0,
        "paymentMethod": "BANK_TRANSFER", "isConfirmed": False,
        "slip": [_demo_slip("s-2", 250.0, "Anong K.")],
        "createdAt": "2024-06-01T11:02:00.000Z",
    })
    gateway.add_transaction(store_id, {
        "id": "t-1005", "orderId": "o-1005", "totalAmount": 250.0,
        "paymentMethod": "BANK_TRANSFER", "isConfirmed": True,
        "createdAt": "2024-05-30T18:40:00.000Z",
    })
    return gateway


def build_engine() -> ReconciliationEngine:
    """Engine for the configured backend, or the demo store."""
    load_dotenv()
    base_url = os.getenv("STORE_API_URL")
    access_token = os.getenv("STORE_API_TOKEN")
    store_id = os.getenv("STORE_ID")

    if base_url and access_token and store_id:
        print(f"Using storefront backend at {base_url} (store {store_id})")
        return ReconciliationEngine(store_id, RestStoreGateway(base_url=base_url, access_token=access_token))

    print("⚠️  STORE_API_URL / STORE_API_TOKEN / STORE_ID not set, using demo data")
    return ReconciliationEngine(DEMO_STORE_ID, demo_gateway())


def print_notifications(engine: ReconciliationEngine):
    for note in engine.drain_notifications():
        icon = "✅" if note.ok else "❌"
        print(f"{icon} {note.message}")


def print_orders(engine: ReconciliationEngine):
    counts = engine.counts
    print(
        f"\nOrders: {counts.all} total | waiting payment {counts.waiting_payment} | "
        f"waiting delivery {counts.waiting_delivery} | in delivery {counts.in_delivery}"
    )
    for view in list(ORDER_VIEWS) + [ALL_VIEW]:
        rows = engine.order_rows(view)
        print(f"  [{view}] {len(rows)}")
    for row in engine.order_rows(ALL_VIEW):
        state = row.transaction.state.value if row.transaction else "-"
        print(
            f"    {row.order.id:<8} {row.order.status.label:<17} "
            f"{row.order.customer_name:<12} {row.order.total:>8.2f}  payment: {state}"
        )


def main():
    """
    Main function - demonstrates the complete reconciliation flow
    """
    print("=" * 60)
    print("Storefront Admin - Order & Payment Reconciliation")
    print("=" * 60)

    engine = build_engine()

    print("\n[1/4] Loading orders and transactions...")
    if not engine.load():
        print_notifications(engine)
        print("Please check STORE_API_URL and STORE_API_TOKEN.")
        return
    print_orders(engine)

    print("\n[2/4] Payments waiting for verification:")
    transfers = engine.transfer_rows(NOT_VERIFIED_VIEW)
    for row in transfers:
        print(
            f"    order {row.transaction.order_id:<8} {row.customer_name:<12} "
            f"{row.transaction.total_amount:>8.2f} ({len(row.transaction.slip)} slip(s))"
        )
    if not transfers:
        print("    none")

    print("\n[3/4] Verifying the newest payment...")
    if transfers:
        engine.request_transaction_decision(transfers[0].transaction, "accept")
        print_notifications(engine)
        engine.commit_transaction_decision()
        print_notifications(engine)
        print_orders(engine)

    print("\n[4/4] Moving a waiting-delivery order to delivery...")
    waiting = engine.order_rows("waiting-delivery")
    if waiting:
        engine.update_order(waiting[0].order.id, {"status": "IN_DELIVERY"})
        print_notifications(engine)
        print_orders(engine)

    stats = store_stats(engine.orders.orders(), engine.transactions.transactions())
    print(
        f"\nFinished orders: {stats['totalOrders']} | sales {stats['totalSales']:.2f} | "
        f"average {stats['averageOrderValue']:.2f}"
    )
    print("\n✅ Done.")


if __name__ == "__main__":
    main()
