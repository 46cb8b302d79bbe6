from enum import Enum


class OrderAction(str, Enum):
    """User or system actions that mutate an existing order."""

    CANCEL = "CANCEL"
    PAY = "PAY"
    SHIP = "SHIP"
    CONFIRM_RECEIPT = "CONFIRM_RECEIPT"
    APPLY_REFUND = "APPLY_REFUND"
    APPROVE_REFUND = "APPROVE_REFUND"
    REJECT_REFUND = "REJECT_REFUND"
    APPLY_DISPUTE = "APPLY_DISPUTE"
    REVIEW_DISPUTE = "REVIEW_DISPUTE"
    RESOLVE_DISPUTE = "RESOLVE_DISPUTE"

    # System-only: the expiry sweep cancelling an abandoned unpaid order
    EXPIRE = "EXPIRE"
