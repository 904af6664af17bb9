"""
Core domain exceptions for the reconciliation workflow and its gateway.
"""


class StoreAdminError(Exception):
    """Base exception for storefront admin errors."""
    pass


class GatewayError(StoreAdminError):
    """Raised when the storefront backend cannot be reached."""
    pass


class FetchError(StoreAdminError):
    """Raised when a load call fails or reports success=false."""
    pass


class UpdateError(StoreAdminError):
    """Raised when a mutation call fails or reports success=false."""
    pass


class InconsistentReferenceError(StoreAdminError):
    """Raised when a transaction references an order that is not in the snapshot."""

    def __init__(self, transaction_id: str, order_id: str):
        self.transaction_id = transaction_id
        self.order_id = order_id
        super().__init__(
            f"Transaction {transaction_id} references unknown order {order_id}"
        )


class DecisionError(StoreAdminError):
    """Raised when a payment decision cannot be staged or committed."""
    pass


class TransitionNotAllowedError(StoreAdminError):
    """Raised when the transition policy refuses an order status change."""
    pass


class PatchValidationError(StoreAdminError):
    """Raised when an order patch fails validation."""
    pass
