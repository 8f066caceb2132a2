"""Creator-side validation package."""

from moneytrack.validation.validator import LedgerValidator, TransactionRejectedError

__all__ = ["LedgerValidator", "TransactionRejectedError"]
