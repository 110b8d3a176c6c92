"""Logging filter that keeps credentials out of log output.

The EquipsTIC API uses HTTP Basic authentication, so the SOA bus password
travels with every request and may end up in exception messages or in the
``extra`` context attached to log records. Registered secrets are replaced
with ``[REDACTED]`` before any handler formats the record.

Usage:
    1. Call install_filter() during application startup
    2. Call register_secret() for each sensitive value to redact

Example:
    >>> from equipstic.logging_security import install_filter, register_secret
    >>> install_filter()
    >>> register_secret("s3cret")
    >>> logging.getLogger("equipstic").warning("login with s3cret")  # login with [REDACTED]
"""

import logging
import threading
import traceback
from typing import Final

REDACTED: Final[str] = "[REDACTED]"

# Attributes every LogRecord carries; anything else came in through ``extra``
_RECORD_ATTRIBUTES: Final[frozenset[str]] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "asctime"}


class SecretFilter(logging.Filter):
    """Logging filter that redacts registered secrets from log records.

    The filter renders the message with its arguments, then redacts the
    rendered text, the formatted traceback and any string passed as extra
    context.
    """

    def __init__(self) -> None:
        """Initialize the secret filter with an empty secrets registry."""
        super().__init__()
        self._secrets: set[str] = set()
        self._lock = threading.Lock()

    def register_secret(self, secret: str | None) -> None:
        """Register a secret value to be redacted. Empty values are ignored."""
        if secret:
            with self._lock:
                self._secrets.add(secret)

    def redact(self, text: str) -> str:
        """Replace every registered secret in text with [REDACTED]."""
        with self._lock:
            # Longest first so that a secret containing another is fully hidden
            secrets = sorted(self._secrets, key=len, reverse=True)
        for secret in secrets:
            text = text.replace(secret, REDACTED)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        """Redact the record in place. Always lets the record through."""
        if not self._secrets:
            return True

        record.msg = self.redact(record.getMessage())
        record.args = None

        if record.exc_info and not record.exc_text:
            record.exc_text = "".join(traceback.format_exception(*record.exc_info)).rstrip()
        if record.exc_text:
            record.exc_text = self.redact(record.exc_text)

        for key, value in list(vars(record).items()):
            if key not in _RECORD_ATTRIBUTES and isinstance(value, str):
                setattr(record, key, self.redact(value))

        return True


# Global filter instance
_filter: SecretFilter | None = None

# Secrets registered before the filter was installed
_pending_secrets: list[str] = []


def _attach(secret_filter: SecretFilter) -> None:
    # Logger filters do not run for records propagated from child loggers,
    # so the filter goes on the handlers of the root logger.
    root = logging.getLogger()
    for handler in root.handlers:
        if secret_filter not in handler.filters:
            handler.addFilter(secret_filter)
    if secret_filter not in root.filters:
        root.addFilter(secret_filter)


def install_filter() -> SecretFilter:
    """Install the secret filter on the root logger and its handlers.

    Call it after the logging handlers are configured. Calling it again
    attaches the same filter to handlers added since the last call.

    Returns:
        The installed SecretFilter instance.
    """
    global _filter
    if _filter is None:
        _filter = SecretFilter()
        for secret in _pending_secrets:
            _filter.register_secret(secret)
        _pending_secrets.clear()
    _attach(_filter)
    return _filter


def register_secret(secret: str | None) -> None:
    """Register a secret value to be redacted from all logs.

    Can be called before or after install_filter(); secrets registered early
    are queued until the filter exists.
    """
    if not secret:
        return
    if _filter is not None:
        _filter.register_secret(secret)
    else:
        _pending_secrets.append(secret)
