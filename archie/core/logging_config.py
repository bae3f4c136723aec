"""Logging configuration for the CLI and API entry points."""

import logging
import os
from typing import Optional, Set


class SuppressHealthCheckFilter(logging.Filter):
    """Filter that suppresses access logs for liveness checks."""

    SUPPRESSED_PATTERNS: Set[str] = {
        "GET /api/healthz",
        "GET /api/health",
    }

    def filter(self, record: logging.LogRecord) -> bool:
        """Return False to suppress, True to keep."""
        status_code = self._extract_status_code(record)
        if status_code is not None and status_code != 200:
            return True

        message = record.getMessage()
        for pattern in self.SUPPRESSED_PATTERNS:
            if pattern in message:
                return False

        return True

    @staticmethod
    def _extract_status_code(record: logging.LogRecord) -> Optional[int]:
        """Extract numeric status code from uvicorn access log record."""
        args = getattr(record, "args", None)
        if not args:
            return None

        try:
            return int(args[-1])
        except (TypeError, ValueError, KeyError):
            return None


def configure_logging(level: Optional[str] = None, verbose: bool = False) -> None:
    """
    Configure application logging.

    Args:
        level: Root log level name (defaults to LOG_LEVEL env var, then INFO)
        verbose: Enable DEBUG output for workflow and memory loggers
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )

    access_logger = logging.getLogger("uvicorn.access")
    filter_instance = SuppressHealthCheckFilter()
    for handler in access_logger.handlers:
        handler.addFilter(filter_instance)

    # Suppress external library INFO/DEBUG logs (keep WARNING+)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("anthropic").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    if verbose:
        logging.getLogger("archie.workflows").setLevel(logging.DEBUG)
        logging.getLogger("archie.domain").setLevel(logging.DEBUG)
        logging.getLogger("archie.services").setLevel(logging.DEBUG)

    logging.getLogger(__name__).debug(
        f"Logging configured: level={level_name}, verbose={verbose}"
    )
