"""
Transaction Log Module

Append-only history of transfers and card authorizations. Each appended
record receives a monotonically increasing sequence number that orders the
log even when timestamps collide.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Set
import threading

from .errors import InvalidArgument, NotFound


class TransactionType(Enum):
    """Kinds of ledger transactions"""
    TRANSFER = "transfer"
    CARD_AUTHORIZATION = "card_authorization"


class TransactionStatus(Enum):
    """States of a transaction"""
    QUEUED = "queued"      # Accepted but not resolved; never stored
    SETTLED = "settled"    # Completed and final
    FAILED = "failed"      # Terminal failure, balances untouched

    @property
    def is_terminal(self) -> bool:
        return self in (TransactionStatus.SETTLED, TransactionStatus.FAILED)


@dataclass(frozen=True)
class Transaction:
    """
    Immutable record of a ledger operation
    """
    id: str
    transaction_type: TransactionType
    amount: int
    status: TransactionStatus
    from_account_id: Optional[str] = None
    to_account_id: Optional[str] = None
    currency: Optional[str] = None
    failure_reason: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    settled_at: Optional[datetime] = None
    sequence: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_settled(self) -> bool:
        return self.status == TransactionStatus.SETTLED

    @property
    def is_failed(self) -> bool:
        return self.status == TransactionStatus.FAILED

    def touches(self, account_id: str) -> bool:
        """Check whether the account is on either side of this transaction"""
        return account_id in (self.from_account_id, self.to_account_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.transaction_type.value,
            "from_account_id": self.from_account_id,
            "to_account_id": self.to_account_id,
            "amount": self.amount,
            "currency": self.currency,
            "status": self.status.value,
            "failure_reason": self.failure_reason,
            "created_at": self.created_at.isoformat(),
            "settled_at": self.settled_at.isoformat() if self.settled_at else None,
            "sequence": self.sequence,
            "metadata": dict(self.metadata),
        }


class TransactionLog:
    """Append-only, sequence-ordered transaction history"""

    def __init__(self):
        self._entries: List[Transaction] = []
        self._by_id: Dict[str, Transaction] = {}
        self._reserved: Set[str] = set()
        self._next_sequence = 1
        self._lock = threading.Lock()

    def append(self, transaction: Transaction) -> Transaction:
        """
        Append a resolved transaction to the log

        Returns:
            The stored record with its sequence number assigned
        """
        if not transaction.status.is_terminal:
            raise InvalidArgument(
                f"Only settled or failed transactions can be logged, got {transaction.status.value}"
            )

        with self._lock:
            if transaction.id in self._by_id:
                raise InvalidArgument(f"Transaction {transaction.id} already logged")

            self._reserved.discard(transaction.id)
            stored = replace(transaction, sequence=self._next_sequence)
            self._next_sequence += 1
            self._entries.append(stored)
            self._by_id[stored.id] = stored
            return stored

    def reserve(self, transaction_id: str) -> None:
        """
        Claim an id for a transaction that is about to be executed

        The id stays claimed until the record is appended or the claim is
        released, so two in-flight operations can never share an id.
        """
        with self._lock:
            if transaction_id in self._by_id or transaction_id in self._reserved:
                raise InvalidArgument(f"Transaction id {transaction_id} is already in use")
            self._reserved.add(transaction_id)

    def release(self, transaction_id: str) -> None:
        """Drop an unused claim; a no-op once the record is appended"""
        with self._lock:
            self._reserved.discard(transaction_id)

    def get(self, transaction_id: str) -> Transaction:
        with self._lock:
            transaction = self._by_id.get(transaction_id)
        if transaction is None:
            raise NotFound("transaction", transaction_id)
        return transaction

    def query(self, account_id: Optional[str] = None) -> List[Transaction]:
        """Transactions in sequence order, optionally those touching one account"""
        with self._lock:
            entries = list(self._entries)
        if account_id is None:
            return entries
        return [t for t in entries if t.touches(account_id)]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
