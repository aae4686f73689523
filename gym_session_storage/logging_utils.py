"""
Logging setup for the sync engine.

Plain text for interactive runs, single-line JSON when logs are shipped
from a device or container. Sync log lines carry the signed-in account
and the operation as structured fields rather than in the message text.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

# Azure SDK loggers that log every HTTP request at INFO
NOISY_LOGGERS = (
    "azure",
    "azure.core",
    "azure.core.pipeline",
    "azure.core.pipeline.policies",
    "azure.cosmos",
    "azure.identity",
    "msal",
    "urllib3",
)

# Fields always present in JSON output, even when empty
CONTEXT_FIELDS = ("account_id", "operation")

_LOG_RECORD_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class StructuredJsonFormatter(logging.Formatter):
    """
    One JSON object per line:
    - timestamp: when the record was created, ISO 8601 in UTC
    - level, logger, message
    - account_id, operation: sync context (null outside the coordinator)
    - any other ``extra`` fields, stringified if not JSON serializable
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in CONTEXT_FIELDS:
            entry[name] = getattr(record, name, None)

        for key, value in vars(record).items():
            if key in _LOG_RECORD_ATTRS or key in entry or key.startswith("_"):
                continue
            try:
                json.dumps(value)
            except (TypeError, ValueError):
                value = str(value)
            entry[key] = value

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging(
    level: int = logging.INFO,
    json_logs: bool = False,
    logger_name: str | None = None,
) -> logging.Logger:
    """
    Install a single stdout handler and quiet the Azure SDK.

    Args:
        level: Level for the configured logger
        json_logs: Emit StructuredJsonFormatter output instead of plain text
        logger_name: Logger to configure (default: root logger)

    Returns:
        The configured logger
    """
    logger = logging.getLogger(logger_name)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    if json_logs:
        handler.setFormatter(StructuredJsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(levelname)s  %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)

    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(max(level, logging.WARNING))
    return logger


class SyncLoggerAdapter(logging.LoggerAdapter):
    """
    Adds the signed-in account to every record.

    Per-call ``extra`` fields are kept and win over the adapter's own.
    """

    @classmethod
    def for_account(cls, logger: logging.Logger, account_id: str | None) -> "SyncLoggerAdapter":
        return cls(logger, {"account_id": account_id})

    @property
    def account_id(self) -> str | None:
        return (self.extra or {}).get("account_id")

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        kwargs["extra"] = {**(self.extra or {}), **kwargs.get("extra", {})}
        return msg, kwargs
