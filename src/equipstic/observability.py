"""Optional Pydantic Logfire instrumentation.

When ``EQUIPSTIC_LOGFIRE_TOKEN`` is set and the ``logfire`` package is
installed (``pip install equipstic-client[observability]``), HTTP calls made
by the client are traced and standard library log records are forwarded to
Logfire. Otherwise everything here is a no-op.
"""

import logging

from equipstic.config import Settings

logger = logging.getLogger(__name__)

# Track whether logfire has been initialized
_logfire_initialized = False


def initialize_logfire(settings: Settings) -> bool:
    """Initialize Pydantic Logfire if a token is configured.

    Args:
        settings: Application settings holding the optional Logfire token.

    Returns:
        bool: True if logfire is active, False otherwise
    """
    global _logfire_initialized

    if _logfire_initialized:
        logger.debug("Logfire already initialized, skipping")
        return True

    if not settings.logfire_token:
        logger.debug("Logfire token not configured, observability disabled")
        return False

    try:
        import logfire
    except ImportError:
        logger.warning("Logfire package not installed, observability disabled")
        return False

    try:
        logfire.configure(
            token=settings.logfire_token,
            service_name="equipstic-client",
            environment=settings.environment,
        )
        logfire.instrument_httpx()
        logging.getLogger().addHandler(logfire.LogfireLoggingHandler())
    except Exception:
        logger.exception("Failed to initialize Logfire")
        return False

    _logfire_initialized = True
    logger.info("Logfire initialized successfully")
    return True
