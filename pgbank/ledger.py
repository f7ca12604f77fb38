"""
Ledger Engine Module

Executes transfers as debit/credit pairs against the AccountStore and
records every outcome in the TransactionLog. Each call resolves to a
terminal status before returning: a transfer is either settled or failed,
never left half-applied.

Insufficient funds is a normal business outcome and is returned as a failed
Transaction (with an alert for the payer), not raised.
"""

from datetime import datetime, timezone
from typing import Callable, List, Optional
import uuid

from .accounts import AccountStore, Account
from .alerts import AlertQueue, AlertType
from .currency import format_amount
from .errors import LedgerError, InvalidArgument, InsufficientFunds, InternalInconsistency
from .logging_config import get_logger, log_action
from .transaction_log import Transaction, TransactionLog, TransactionStatus, TransactionType


def _require_amount(amount) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise InvalidArgument("amount must be an integer amount of minor units")
    if amount <= 0:
        raise InvalidArgument("amount must be positive")


def _require_text(value, name: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgument(f"{name} is required")


def _mask_card_token(card_token: str) -> str:
    return "*" * max(len(card_token) - 4, 0) + card_token[-4:]


class LedgerEngine:
    """
    Transfer and authorization processing on top of the account store
    """

    def __init__(
        self,
        accounts: AccountStore,
        transaction_log: TransactionLog,
        alerts: AlertQueue,
        id_factory: Optional[Callable[[], str]] = None,
        alert_on_settlement: bool = False
    ):
        self.accounts = accounts
        self.transaction_log = transaction_log
        self.alerts = alerts
        self.alert_on_settlement = alert_on_settlement
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))
        self.logger = get_logger("pgbank.ledger")

    def transfer(
        self,
        from_account_id: str,
        to_account_id: str,
        amount: int,
        transaction_id: Optional[str] = None
    ) -> Transaction:
        """
        Move money between two accounts

        Args:
            from_account_id: Account to debit
            to_account_id: Account to credit
            amount: Positive amount in minor units
            transaction_id: Pre-generated id; the engine's id factory is used if omitted

        Returns:
            The logged Transaction, settled or failed

        Raises:
            InvalidArgument: malformed input, inactive account or currency mismatch
            NotFound: either account does not exist
            InternalInconsistency: a failed credit could not be compensated
        """
        _require_text(from_account_id, "from_account_id")
        _require_text(to_account_id, "to_account_id")
        _require_amount(amount)
        if from_account_id == to_account_id:
            raise InvalidArgument("Cannot transfer to the same account")

        source = self.accounts.get(from_account_id)
        destination = self.accounts.get(to_account_id)
        for account in (source, destination):
            if not account.is_active:
                raise InvalidArgument(f"Account {account.id} is {account.state.value}")
        if source.currency != destination.currency:
            raise InvalidArgument(
                f"Currency mismatch: {source.currency.code} -> {destination.currency.code}"
            )

        if transaction_id is None:
            transaction_id = self._id_factory()
        _require_text(transaction_id, "transaction_id")

        # A used id is rejected here, before any balance moves
        self.transaction_log.reserve(transaction_id)
        try:
            return self._execute_transfer(transaction_id, source, destination, amount)
        finally:
            self.transaction_log.release(transaction_id)

    def _execute_transfer(
        self,
        transaction_id: str,
        source: Account,
        destination: Account,
        amount: int
    ) -> Transaction:
        from_account_id = source.id
        to_account_id = destination.id
        created_at = datetime.now(timezone.utc)
        failure: Optional[LedgerError] = None
        compensated = False

        with self.accounts.locked(from_account_id, to_account_id):
            try:
                self.accounts.adjust_balance(from_account_id, -amount, source.minimum_balance)
            except LedgerError as e:
                failure = e
            else:
                try:
                    self.accounts.adjust_balance(to_account_id, amount, destination.minimum_balance)
                except LedgerError as e:
                    failure = e
                    self._compensate(transaction_id, source, destination, amount, created_at, e)
                    compensated = True

        if failure is not None:
            return self._record_failed_transfer(
                transaction_id, source, destination, amount, created_at, failure, compensated
            )

        transaction = self.transaction_log.append(Transaction(
            id=transaction_id,
            transaction_type=TransactionType.TRANSFER,
            from_account_id=from_account_id,
            to_account_id=to_account_id,
            amount=amount,
            currency=source.currency.code,
            status=TransactionStatus.SETTLED,
            created_at=created_at,
            settled_at=datetime.now(timezone.utc),
        ))

        log_action(
            self.logger, "info", "Transfer settled",
            user_id=source.owner_user_id, action="transfer", account_id=source.id,
            transaction_id=transaction.id,
            details={"from": from_account_id, "to": to_account_id, "amount": amount,
                     "sequence": transaction.sequence}
        )

        if self.alert_on_settlement:
            self.alerts.push(
                destination.owner_user_id,
                AlertType.TRANSFER_RECEIVED,
                f"You received {format_amount(amount, destination.currency)} "
                f"in {destination.display_name}"
            )

        return transaction

    def _compensate(
        self,
        transaction_id: str,
        source: Account,
        destination: Account,
        amount: int,
        created_at: datetime,
        credit_error: LedgerError
    ) -> None:
        """Undo the debit of a transfer whose credit failed; caller holds the locks"""
        self.logger.error(
            f"Credit failed for transfer {transaction_id} after debit, "
            f"compensating {source.id}: {credit_error}"
        )
        try:
            self.accounts.adjust_balance(source.id, amount, None)
        except LedgerError as e:
            self.accounts.halt(
                source.id, f"compensation of transfer {transaction_id} failed: {e}"
            )
            transaction = self.transaction_log.append(Transaction(
                id=transaction_id,
                transaction_type=TransactionType.TRANSFER,
                from_account_id=source.id,
                to_account_id=destination.id,
                amount=amount,
                currency=source.currency.code,
                status=TransactionStatus.FAILED,
                failure_reason=f"compensation failed: {e}",
                created_at=created_at,
                metadata={"credit_error": str(credit_error), "compensated": False},
            ))
            self.alerts.push(
                source.owner_user_id,
                AlertType.RECONCILIATION_REQUIRED,
                f"Account {source.display_name} has been frozen while a transfer of "
                f"{format_amount(amount, source.currency)} is reconciled"
            )
            raise InternalInconsistency(
                f"Transfer {transaction_id} debited {source.id} but could not be "
                f"credited or compensated",
                transaction=transaction,
                halted_account_id=source.id,
            ) from e

    def _record_failed_transfer(
        self,
        transaction_id: str,
        source: Account,
        destination: Account,
        amount: int,
        created_at: datetime,
        failure: LedgerError,
        compensated: bool = False
    ) -> Transaction:
        if compensated:
            reason = "credit_failed"
        elif isinstance(failure, InsufficientFunds):
            reason = "insufficient_funds"
        else:
            reason = failure.code

        transaction = self.transaction_log.append(Transaction(
            id=transaction_id,
            transaction_type=TransactionType.TRANSFER,
            from_account_id=source.id,
            to_account_id=destination.id,
            amount=amount,
            currency=source.currency.code,
            status=TransactionStatus.FAILED,
            failure_reason=reason,
            created_at=created_at,
            metadata={"error": failure.detail, "compensated": compensated},
        ))

        log_action(
            self.logger, "warning", f"Transfer failed: {failure.detail}",
            user_id=source.owner_user_id, action="transfer", account_id=source.id,
            transaction_id=transaction.id,
            details={"from": source.id, "to": destination.id, "amount": amount,
                     "reason": reason}
        )

        self.alerts.push(
            source.owner_user_id,
            AlertType.TRANSFER_FAILED,
            f"Transfer of {format_amount(amount, source.currency)} from "
            f"{source.display_name} failed: {reason.replace('_', ' ')}"
        )
        return transaction

    def authorize_card(
        self,
        card_token: str,
        terminal_id: str,
        amount: int,
        transaction_id: Optional[str] = None
    ) -> Transaction:
        """
        Authorize a card payment.

        Placeholder for a real card-network integration: every well-formed
        request is approved and recorded as a settled authorization without
        touching any account balance.
        """
        _require_text(card_token, "card_token")
        _require_text(terminal_id, "terminal_id")
        _require_amount(amount)

        if transaction_id is None:
            transaction_id = self._id_factory()
        _require_text(transaction_id, "transaction_id")

        self.transaction_log.reserve(transaction_id)
        now = datetime.now(timezone.utc)
        try:
            transaction = self.transaction_log.append(Transaction(
                id=transaction_id,
                transaction_type=TransactionType.CARD_AUTHORIZATION,
                amount=amount,
                status=TransactionStatus.SETTLED,
                created_at=now,
                settled_at=now,
                metadata={
                    "approved": True,
                    "hold_amount": amount,
                    "terminal_id": terminal_id,
                    "card_token_hint": _mask_card_token(card_token),
                },
            ))
        finally:
            self.transaction_log.release(transaction_id)

        self.logger.info(f"Card authorization {transaction.id} approved at terminal {terminal_id}")
        return transaction

    def list_transactions(self, account_id: Optional[str] = None) -> List[Transaction]:
        """Transactions in append order, optionally only those touching an account"""
        return self.transaction_log.query(account_id)

    def get_transaction(self, transaction_id: str) -> Transaction:
        return self.transaction_log.get(transaction_id)
