"""
Tests for order patch validation
"""
import pytest

from core.exceptions import PatchValidationError
from core.models import OrderStatus, PaymentDecision
from validator.order_patch import OrderPatch, validate_order_patch, parse_decision


class TestOrderPatch:
    """Test the closed set of editable order fields"""

    def test_status_only(self):
        patch = validate_order_patch({"status": "waiting_delivery"})
        assert patch.status is OrderStatus.WAITING_DELIVERY
        assert patch.to_payload() == {"status": "WAITING_DELIVERY"}

    def test_camel_case_keys_accepted(self):
        patch = validate_order_patch({"customerName": "  Malee ", "customerAdds": "2 Sathorn"})
        assert patch.customer_name == "Malee"
        assert patch.to_payload() == {"customerName": "Malee", "customerAdds": "2 Sathorn"}

    def test_blank_name_rejected(self):
        with pytest.raises(PatchValidationError) as exc:
            validate_order_patch({"customer_name": "   "})
        assert "Customer name is required" in str(exc.value)

    def test_blank_address_rejected(self):
        with pytest.raises(PatchValidationError) as exc:
            validate_order_patch({"customerAdds": ""})
        assert "Customer address is required" in str(exc.value)

    def test_unknown_status_rejected(self):
        with pytest.raises(PatchValidationError):
            validate_order_patch({"status": "SHIPPED"})

    def test_unknown_field_rejected(self):
        with pytest.raises(PatchValidationError):
            validate_order_patch({"status": "PENDING", "totalAmount": 0})

    def test_empty_patch_rejected(self):
        with pytest.raises(PatchValidationError):
            validate_order_patch({})

    def test_non_dict_rejected(self):
        with pytest.raises(PatchValidationError):
            validate_order_patch(["status", "PENDING"])

    def test_existing_patch_passes_through(self):
        patch = OrderPatch(status=OrderStatus.FINISHED)
        assert validate_order_patch(patch) is patch


class TestParseDecision:

    def test_accept_any_case(self):
        assert parse_decision(" Accept ") is PaymentDecision.ACCEPT

    def test_enum_passes_through(self):
        assert parse_decision(PaymentDecision.REJECT) is PaymentDecision.REJECT

    @pytest.mark.parametrize("value", ["approve", "", None])
    def test_invalid_decision(self, value):
        with pytest.raises(PatchValidationError):
            parse_decision(value)
