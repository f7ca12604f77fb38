"""
Structured Logging Configuration Module

JSON log lines for ledger activity. Records emitted through ``log_action``
carry the ledger identifiers (user, account, transaction) as top-level
fields so a single account's history can be grepped out of the stream.
"""

import logging
import json
from datetime import datetime, timezone
from typing import Optional

LEDGER_FIELDS = ("user_id", "account_id", "transaction_id", "action")

TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class JSONFormatter(logging.Formatter):
    """Render a record as one JSON object per line"""

    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in LEDGER_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_entry[name] = value

        details = getattr(record, "details", None)
        if details:
            log_entry["details"] = details

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json",
                  logger_name: str = "pgbank") -> logging.Logger:
    """
    Attach a single stream handler to the package logger.

    Args:
        level: Log level name
        fmt: "json" for structured lines, "text" for plain ones
        logger_name: Logger to configure

    Returns:
        The configured logger
    """
    logger = logging.getLogger(logger_name)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    if fmt.lower() == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper()))
    logger.propagate = False
    return logger


def get_logger(name: str = "pgbank") -> logging.Logger:
    return logging.getLogger(name)


def log_action(logger: logging.Logger, level: str, message: str,
               action: str, user_id: Optional[str] = None,
               account_id: Optional[str] = None,
               transaction_id: Optional[str] = None,
               details: Optional[dict] = None):
    """
    Log a ledger action with its identifiers attached to the record.

    Args:
        logger: Logger instance
        level: Level name (info, warning, error, critical)
        message: Human readable message
        action: Ledger operation, e.g. "transfer" or "account_open"
        user_id: Owner the action concerns
        account_id: Account acted upon (the payer for transfers)
        transaction_id: Transaction produced by the action
        details: Amounts, counterparties and other context
    """
    fields = {"action": action}
    if user_id:
        fields["user_id"] = user_id
    if account_id:
        fields["account_id"] = account_id
    if transaction_id:
        fields["transaction_id"] = transaction_id
    if details:
        fields["details"] = details

    logger.log(getattr(logging, level.upper()), message, extra=fields)
