"""
Ledger system wiring
"""

from typing import Callable, Optional

from .accounts import AccountStore
from .alerts import AlertQueue
from .config import LedgerConfig, get_config
from .ledger import LedgerEngine
from .transaction_log import TransactionLog


class LedgerSystem:
    """Ledger core with all components initialized"""

    def __init__(
        self,
        config: Optional[LedgerConfig] = None,
        id_factory: Optional[Callable[[], str]] = None
    ):
        self.config = config or get_config()

        self.accounts = AccountStore(
            allow_overdraft=self.config.allow_overdraft,
            id_factory=id_factory
        )
        self.transaction_log = TransactionLog()
        self.alerts = AlertQueue(id_factory=id_factory)
        self.ledger = LedgerEngine(
            self.accounts,
            self.transaction_log,
            self.alerts,
            id_factory=id_factory,
            alert_on_settlement=self.config.alert_on_settlement
        )
