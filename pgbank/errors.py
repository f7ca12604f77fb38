"""
Ledger Error Taxonomy

Typed failures surfaced by the ledger core. Each error carries a stable
``code`` tag so callers outside the core (the HTTP shell) can map failures
without inspecting messages.

    LedgerError (base)
    ├── InvalidArgument        malformed or missing input, never retried
    ├── NotFound               referenced account or transaction is absent
    ├── InsufficientFunds      balance floor would be crossed
    └── InternalInconsistency  compensation failed, account halted
"""

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .transaction_log import Transaction


class LedgerError(Exception):
    """Base class for all ledger failures"""

    code = "ledger_error"

    def __init__(self, detail: str = "Ledger operation failed"):
        self.detail = detail
        super().__init__(detail)


class InvalidArgument(LedgerError):
    """Caller supplied malformed input"""

    code = "invalid_argument"


class NotFound(LedgerError):
    """Referenced entity does not exist or is not usable"""

    code = "not_found"

    def __init__(self, entity_type: str, entity_id: str, detail: Optional[str] = None):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(detail or f"{entity_type.capitalize()} {entity_id} not found")


class InsufficientFunds(LedgerError):
    """
    Balance adjustment would take an account below its floor.

    Attributes:
        account_id: Account that lacks funds
        requested: Signed delta that was attempted (minor units)
        available: Balance at the time of the attempt (minor units)
    """

    code = "insufficient_funds"

    def __init__(self, account_id: str, requested: int, available: int):
        self.account_id = account_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient funds in account {account_id}: "
            f"requested {abs(requested)}, available {available}"
        )


class InternalInconsistency(LedgerError):
    """Compensation of a partially applied transfer failed"""

    code = "internal_inconsistency"

    def __init__(self, detail: str, transaction: Optional["Transaction"] = None,
                 halted_account_id: Optional[str] = None):
        self.transaction = transaction
        self.halted_account_id = halted_account_id
        super().__init__(detail)
