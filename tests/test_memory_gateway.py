"""
Tests for the in-memory storefront gateway
"""
import pytest


class TestInMemoryStoreGateway:
    """Backend behaviour reproduced in memory"""

    def test_orders_listed_per_store(self, gateway, store_id):
        resp = gateway.get_store_orders(store_id)
        assert resp.success
        assert [o["id"] for o in resp.data["orders"]] == ["o-1", "o-2", "o-3", "o-4"]
        assert gateway.get_store_orders("other-store").data["orders"] == []

    def test_orders_paging(self, gateway, store_id):
        resp = gateway.get_store_orders(store_id, page=2, limit=3)
        assert [o["id"] for o in resp.data["orders"]] == ["o-4"]

    def test_transactions_one_entry_per_order(self, gateway, store_id):
        txns = gateway.get_store_transactions(store_id).data["transactions"]
        assert len(txns) == 4
        assert txns[1] is None

    def test_get_store_order(self, gateway, store_id):
        assert gateway.get_store_order(store_id, "o-3").data["status"] == "WAITING_DELIVERY"
        assert not gateway.get_store_order(store_id, "missing").success

    def test_update_store_order(self, gateway, store_id):
        resp = gateway.update_store_order(store_id, "o-2", {"status": "IN_DELIVERY", "customerName": "Niran"})
        assert resp.success
        assert resp.data["status"] == "IN_DELIVERY"
        assert resp.data["customerName"] == "Niran"
        assert gateway.get_store_order(store_id, "o-2").data["customerName"] == "Niran"

    @pytest.mark.parametrize("patch", [{"status": "SHIPPED"}, {"totalAmount": 1}])
    def test_update_store_order_rejects_bad_patch(self, gateway, store_id, patch):
        assert not gateway.update_store_order(store_id, "o-2", patch).success

    def test_update_unknown_order(self, gateway, store_id):
        resp = gateway.update_store_order(store_id, "missing", {"status": "PENDING"})
        assert not resp.success
        assert resp.message == "Order not found"

    def test_confirm_moves_order_to_waiting_delivery(self, gateway, store_id):
        resp = gateway.update_transaction_by_order_id(store_id, "o-1", "confirmed")
        assert resp.success
        assert resp.data["updatedTransaction"]["isConfirmed"] is True
        assert resp.data["updatedOrder"]["status"] == "WAITING_DELIVERY"

    def test_reject_cancels_order(self, gateway, store_id):
        resp = gateway.update_transaction_by_order_id(store_id, "o-1", "rejected")
        txn = resp.data["updatedTransaction"]
        assert txn["isConfirmed"] is False
        assert txn["paymentMethod"] == "REJECTED"
        assert gateway.get_store_order(store_id, "o-1").data["status"] == "CANCELLED"

    def test_transaction_update_failures(self, gateway, store_id):
        assert gateway.update_transaction_by_order_id(store_id, "missing", "confirmed").message == "Order not found"
        assert gateway.update_transaction_by_order_id(store_id, "o-2", "confirmed").message == "Transaction not found"
        assert not gateway.update_transaction_by_order_id(store_id, "o-1", "approved").success

    def test_seed_requires_order_id(self, gateway, store_id, make_transaction):
        with pytest.raises(ValueError):
            gateway.add_transaction(store_id, make_transaction(orderId=None))

    def test_responses_are_copies(self, gateway, store_id):
        gateway.get_store_orders(store_id).data["orders"][0]["status"] = "FINISHED"
        assert gateway.get_store_order(store_id, "o-1").data["status"] == "PENDING"
