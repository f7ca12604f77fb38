"""
Account Store Module

Owns account records and their balances. This is the only write path for
balances: every mutation happens under the account's exclusive lock.
Balances are integers in the currency's minor units.
"""

from contextlib import contextmanager, ExitStack
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, Iterator, List, Optional
import threading
import uuid

from .currency import Currency
from .errors import InvalidArgument, NotFound, InsufficientFunds
from .logging_config import get_logger, log_action


class AccountState(Enum):
    """Account lifecycle states"""
    ACTIVE = "active"    # Normal operation
    CLOSED = "closed"    # Permanently closed, kept for history
    HALTED = "halted"    # Frozen pending manual reconciliation


@dataclass
class Account:
    """
    Balance-bearing account owned by an external user
    """
    id: str
    owner_user_id: str
    display_name: str
    currency: Currency
    balance: int = 0
    state: AccountState = AccountState.ACTIVE
    overdraft_limit: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_active(self) -> bool:
        return self.state == AccountState.ACTIVE

    @property
    def minimum_balance(self) -> int:
        """Lowest balance this account may reach"""
        return -self.overdraft_limit

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "owner_user_id": self.owner_user_id,
            "display_name": self.display_name,
            "currency": self.currency.code,
            "balance": self.balance,
            "state": self.state.value,
            "overdraft_limit": self.overdraft_limit,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


class AccountStore:
    """
    In-memory account registry with one reentrant lock per account.

    The registry lock only guards the id -> account mapping; balances are
    guarded by the per-account locks. Callers needing two accounts at once
    go through ``locked`` which acquires them in sorted id order.
    """

    MAX_LOCKS_HELD = 2

    def __init__(
        self,
        allow_overdraft: bool = False,
        id_factory: Optional[Callable[[], str]] = None
    ):
        self.allow_overdraft = allow_overdraft
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))
        self._accounts: Dict[str, Account] = {}
        self._locks: Dict[str, threading.RLock] = {}
        self._registry_lock = threading.RLock()
        self.logger = get_logger("pgbank.accounts")

    def open(
        self,
        owner_user_id: str,
        display_name: str,
        currency: str = "USD",
        account_id: Optional[str] = None,
        overdraft_limit: int = 0
    ) -> Account:
        """
        Open a new account with a zero balance

        Args:
            owner_user_id: Opaque id of the owning user
            display_name: Human readable account name
            currency: ISO 4217 code
            account_id: Pre-generated id; the store's id factory is used if omitted
            overdraft_limit: How far below zero the balance may go (minor units)

        Returns:
            Snapshot of the created Account
        """
        if not owner_user_id or not str(owner_user_id).strip():
            raise InvalidArgument("owner_user_id is required")
        if not display_name or not display_name.strip():
            raise InvalidArgument("display_name must not be empty")
        if not isinstance(overdraft_limit, int) or isinstance(overdraft_limit, bool):
            raise InvalidArgument("overdraft_limit must be an integer amount of minor units")
        if overdraft_limit < 0:
            raise InvalidArgument("overdraft_limit cannot be negative")
        if overdraft_limit and not self.allow_overdraft:
            raise InvalidArgument("Overdraft is not enabled for this ledger")

        if account_id is None:
            account_id = self._id_factory()
        if not isinstance(account_id, str) or not account_id.strip():
            raise InvalidArgument("account_id must not be empty")

        account = Account(
            id=account_id,
            owner_user_id=owner_user_id,
            display_name=display_name.strip(),
            currency=Currency.from_code(currency),
            overdraft_limit=overdraft_limit,
        )

        with self._registry_lock:
            if account.id in self._accounts:
                raise InvalidArgument(f"Account {account.id} already exists")
            self._accounts[account.id] = account
            self._locks[account.id] = threading.RLock()

        log_action(
            self.logger, "info", "Account opened",
            user_id=owner_user_id, action="account_open", account_id=account.id,
            details={"currency": account.currency.code}
        )
        return replace(account)

    def _lookup(self, account_id: str) -> Account:
        with self._registry_lock:
            account = self._accounts.get(account_id)
        if account is None:
            raise NotFound("account", account_id)
        return account

    def _lock_for(self, account_id: str) -> threading.RLock:
        with self._registry_lock:
            lock = self._locks.get(account_id)
        if lock is None:
            raise NotFound("account", account_id)
        return lock

    def get(self, account_id: str) -> Account:
        """Get a snapshot of an account"""
        account = self._lookup(account_id)
        with self._lock_for(account_id):
            return replace(account)

    def list(self) -> List[Account]:
        """List snapshots of all accounts in the order they were opened"""
        with self._registry_lock:
            accounts = list(self._accounts.values())
        return [self.get(account.id) for account in accounts]

    @contextmanager
    def locked(self, *account_ids: str) -> Iterator[None]:
        """
        Hold the exclusive locks of up to two accounts.

        Locks are always taken in sorted id order so that two callers locking
        the same pair in opposite directions cannot deadlock.
        """
        ordered = sorted(set(account_ids))
        if len(ordered) > self.MAX_LOCKS_HELD:
            raise InvalidArgument(f"Cannot lock more than {self.MAX_LOCKS_HELD} accounts at once")

        locks = [self._lock_for(account_id) for account_id in ordered]
        with ExitStack() as stack:
            for lock in locks:
                stack.enter_context(lock)
            yield

    def adjust_balance(
        self,
        account_id: str,
        delta: int,
        expected_min_balance: Optional[int] = 0
    ) -> int:
        """
        Apply a signed delta to an account balance

        Args:
            account_id: Account to adjust
            delta: Signed change in minor units
            expected_min_balance: Floor the resulting balance must not cross;
                None disables the check

        Returns:
            The new balance
        """
        if not isinstance(delta, int) or isinstance(delta, bool):
            raise InvalidArgument("delta must be an integer amount of minor units")

        account = self._lookup(account_id)
        with self._lock_for(account_id):
            if not account.is_active:
                raise NotFound("account", account_id,
                               f"Account {account_id} is {account.state.value}")

            new_balance = account.balance + delta
            if expected_min_balance is not None and new_balance < expected_min_balance:
                raise InsufficientFunds(account_id, delta, account.balance)

            account.balance = new_balance
            account.updated_at = datetime.now(timezone.utc)
            self.logger.debug(f"Adjusted {account_id} by {delta}, balance now {new_balance}")
            return new_balance

    def close(self, account_id: str) -> Account:
        """Close an account; only empty accounts can be closed"""
        account = self._lookup(account_id)
        with self._lock_for(account_id):
            if account.state == AccountState.CLOSED:
                raise InvalidArgument(f"Account {account_id} is already closed")
            if account.state == AccountState.HALTED:
                raise InvalidArgument(f"Account {account_id} is halted pending reconciliation")
            if account.balance != 0:
                raise InvalidArgument(
                    f"Account {account_id} has non-zero balance {account.balance}"
                )
            account.state = AccountState.CLOSED
            account.updated_at = datetime.now(timezone.utc)
            snapshot = replace(account)

        log_action(
            self.logger, "info", "Account closed",
            user_id=account.owner_user_id, action="account_close", account_id=account_id
        )
        return snapshot

    def halt(self, account_id: str, reason: str) -> Account:
        """Freeze an account for manual reconciliation"""
        account = self._lookup(account_id)
        with self._lock_for(account_id):
            account.state = AccountState.HALTED
            account.updated_at = datetime.now(timezone.utc)
            snapshot = replace(account)

        log_action(
            self.logger, "critical", f"Account halted: {reason}",
            user_id=account.owner_user_id, action="account_halt", account_id=account_id,
            details={"balance": snapshot.balance}
        )
        return snapshot

    def total_balance(self, currency: Optional[str] = None) -> int:
        """Sum of all balances, optionally restricted to one currency"""
        wanted = Currency.from_code(currency) if currency else None
        return sum(
            account.balance for account in self.list()
            if wanted is None or account.currency == wanted
        )

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._accounts)
