"""
Alert Queue Module

Per-user mailbox of pending in-app notifications. Clients poll for their
alerts; each poll drains the mailbox so an alert is delivered at most once.
Channel subscriptions (email, phone, push token) are recorded for future
delivery integrations but are not used by push or drain.
"""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Deque, Dict, List, Optional
import threading
import uuid

from .errors import InvalidArgument
from .logging_config import get_logger


class AlertType(Enum):
    """Types of alerts"""
    TRANSFER_FAILED = "transfer_failed"
    TRANSFER_RECEIVED = "transfer_received"
    RECONCILIATION_REQUIRED = "reconciliation_required"
    SYSTEM_ALERT = "system_alert"


@dataclass(frozen=True)
class Alert:
    """Pending notification for one user"""
    id: str
    user_id: str
    alert_type: str
    message: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, str]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.alert_type,
            "message": self.message,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class ChannelSubscription:
    """Delivery channels a user registered for alerts"""
    user_id: str
    email: Optional[str] = None
    phone: Optional[str] = None
    push_token: Optional[str] = None
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class _Mailbox:
    __slots__ = ("lock", "alerts")

    def __init__(self):
        self.lock = threading.Lock()
        self.alerts: Deque[Alert] = deque()


class AlertQueue:
    """
    Per-user FIFO mailboxes drained on read.

    Each mailbox has its own lock; push and drain for the same user are
    serialized on it, so an alert pushed during a drain is either part of
    that drain or left for the next one.
    """

    def __init__(self, id_factory: Optional[Callable[[], str]] = None):
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))
        self._mailboxes: Dict[str, _Mailbox] = {}
        self._subscriptions: Dict[str, ChannelSubscription] = {}
        self._registry_lock = threading.Lock()
        self.logger = get_logger("pgbank.alerts")

    def _mailbox(self, user_id: str, create: bool = False) -> Optional[_Mailbox]:
        """Look up a user's mailbox; only pushes create one"""
        with self._registry_lock:
            mailbox = self._mailboxes.get(user_id)
            if mailbox is None and create:
                mailbox = self._mailboxes[user_id] = _Mailbox()
            return mailbox

    def push(
        self,
        user_id: str,
        alert_type,
        message: str,
        alert_id: Optional[str] = None
    ) -> Alert:
        """
        Queue an alert at the tail of a user's mailbox

        Args:
            user_id: Recipient
            alert_type: AlertType or free-form type string
            message: Text shown to the user
            alert_id: Pre-generated id; the queue's id factory is used if omitted
        """
        if not user_id:
            raise InvalidArgument("user_id is required")
        if not message:
            raise InvalidArgument("message is required")

        type_value = alert_type.value if isinstance(alert_type, AlertType) else str(alert_type)
        alert = Alert(
            id=alert_id or self._id_factory(),
            user_id=user_id,
            alert_type=type_value,
            message=message,
        )

        mailbox = self._mailbox(user_id, create=True)
        with mailbox.lock:
            mailbox.alerts.append(alert)

        self.logger.debug(f"Queued {type_value} alert {alert.id} for user {user_id}")
        return alert

    def drain(self, user_id: str) -> List[Alert]:
        """Remove and return every alert queued for a user, oldest first"""
        mailbox = self._mailbox(user_id)
        if mailbox is None:
            return []
        with mailbox.lock:
            drained = list(mailbox.alerts)
            mailbox.alerts.clear()
        return drained

    def pending_count(self, user_id: str) -> int:
        mailbox = self._mailbox(user_id)
        if mailbox is None:
            return 0
        with mailbox.lock:
            return len(mailbox.alerts)

    def subscribe(
        self,
        user_id: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        push_token: Optional[str] = None
    ) -> ChannelSubscription:
        """Record delivery channels for a user, replacing earlier ones"""
        if not user_id:
            raise InvalidArgument("user_id is required")
        if not (email or phone or push_token):
            raise InvalidArgument("At least one of email, phone or push_token is required")

        subscription = ChannelSubscription(
            user_id=user_id, email=email, phone=phone, push_token=push_token
        )
        with self._registry_lock:
            self._subscriptions[user_id] = subscription

        self.logger.info(f"Updated alert channels for user {user_id}")
        return subscription

    def get_subscription(self, user_id: str) -> Optional[ChannelSubscription]:
        with self._registry_lock:
            return self._subscriptions.get(user_id)
