"""
Tests for core domain models
"""
import dataclasses

import pytest

from core.models import (
    Order,
    OrderStatus,
    PaymentDecision,
    Transaction,
    TransactionState,
    Notification,
)


class TestOrder:
    """Order parsing and derived values"""

    def test_from_dict_parses_wire_fields(self, make_order):
        order = Order.from_dict(make_order("o-9", "IN_DELIVERY", customerName="Malee"))
        assert order.id == "o-9"
        assert order.status is OrderStatus.IN_DELIVERY
        assert order.customer_name == "Malee"
        assert order.customer_line_id == "line-o-9"
        assert order.product_info[0].product_id == "p-1"

    def test_total_is_derived(self, make_order):
        data = make_order(productInfo=[
            {"productId": "a", "name": "A", "price": 10.0, "quantity": 3},
            {"productId": "b", "name": "B", "price": 2.5, "quantity": 2},
        ])
        order = Order.from_dict(data)
        assert order.total == 35.0
        assert order.item_count == 2

    def test_unknown_status_rejected(self, make_order):
        with pytest.raises(ValueError):
            Order.from_dict(make_order(status="SHIPPED"))

    @pytest.mark.parametrize("product_info", [[None], "x", [42]])
    def test_non_object_product_lines_rejected(self, make_order, product_info):
        with pytest.raises(TypeError):
            Order.from_dict(make_order(productInfo=product_info))

    def test_parsed_order_is_immutable(self, make_order):
        order = Order.from_dict(make_order())
        assert isinstance(order.product_info, tuple)
        with pytest.raises(dataclasses.FrozenInstanceError):
            order.status = OrderStatus.FINISHED

    def test_empty_product_info_is_not_valid(self, make_order):
        assert Order.from_dict(make_order(productInfo=[])).is_valid is False
        assert Order.from_dict(make_order()).is_valid is True

    def test_to_dict_uses_camel_case(self, make_order):
        out = Order.from_dict(make_order()).to_dict()
        assert out["customerAdds"] == "1 Silom Rd"
        assert out["status"] == "PENDING"
        assert out["productInfo"][0]["productId"] == "p-1"

    def test_status_labels_and_terminal(self):
        assert OrderStatus.PENDING.label == "Waiting Payment"
        assert OrderStatus.FINISHED.is_terminal
        assert OrderStatus.CANCELLED.is_terminal
        assert not OrderStatus.IN_DELIVERY.is_terminal


class TestTransaction:
    """Transaction state and slips"""

    def test_pending_state(self, make_transaction):
        t = Transaction.from_dict(make_transaction())
        assert t.state is TransactionState.PENDING
        assert not t.is_terminal

    def test_confirmed_state(self, make_transaction):
        t = Transaction.from_dict(make_transaction(confirmed=True))
        assert t.state is TransactionState.CONFIRMED
        assert t.is_terminal

    def test_rejected_wins_over_confirmed_flag(self, make_transaction):
        t = Transaction.from_dict(make_transaction(confirmed=True, method="REJECTED"))
        assert t.state is TransactionState.REJECTED

    def test_slip_parsing(self, make_transaction):
        t = Transaction.from_dict(make_transaction())
        slip = t.slip[0]
        assert slip.sender.account == "123"
        assert slip.receiver.display_name == "Shop"
        assert slip.trans_time == "10:00"
        assert t.slip_total == 100.0

    def test_slip_confirmation_is_independent(self, make_transaction):
        t = Transaction.from_dict(make_transaction(confirmed=True))
        assert t.is_confirmed
        assert t.slips_confirmed is False

    def test_missing_order_id_is_none(self, make_transaction):
        t = Transaction.from_dict(make_transaction(orderId=None))
        assert t.order_id is None

    def test_to_dict_includes_state(self, make_transaction):
        out = Transaction.from_dict(make_transaction(method="REJECTED")).to_dict()
        assert out["state"] == "rejected"
        assert out["slip"][0]["sender"]["account"] == {"value": "123"}


class TestEnums:

    def test_decision_maps_to_backend_status(self):
        assert PaymentDecision.ACCEPT.gateway_status == "confirmed"
        assert PaymentDecision.REJECT.gateway_status == "rejected"

    def test_notification_ok(self):
        assert Notification("success", "x").ok
        assert Notification("info", "x").ok
        assert not Notification("error", "x").ok
