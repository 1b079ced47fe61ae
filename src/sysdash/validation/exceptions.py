"""
Error types and logging helpers.

ValidationError is raised for any rejected input: config values, environment
overrides, threshold updates and export arguments. The handle_* helpers log an
error with a context prefix at a chosen severity and then either re-raise it,
swallow it (for best-effort paths like settings persistence) or exit the CLI.
"""

import logging
import sys
from enum import Enum
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for error handling."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


_LOG_LEVELS = {
    ErrorSeverity.DEBUG: logging.DEBUG,
    ErrorSeverity.INFO: logging.INFO,
    ErrorSeverity.WARNING: logging.WARNING,
    ErrorSeverity.ERROR: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}


class ValidationError(Exception):
    """
    Raised when a value fails validation.

    ``field_name`` is the dotted path of the offending setting (for example
    ``alerts.thresholds.cpu.warning``), the environment variable name, or the
    threshold category for API updates.
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity


def handle_error(
    error: Exception,
    context: str,
    severity: Union[ErrorSeverity, str] = ErrorSeverity.ERROR,
    reraise: bool = True,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Log ``error`` with its context and optionally re-raise it.

    Args:
        error: The exception that occurred
        context: Where it happened, prefixed to the log line
        severity: Log severity; DEBUG and CRITICAL include the traceback
        reraise: Whether to re-raise after logging
        logger: Logger to use instead of this module's
    """
    if isinstance(severity, str):
        severity = ErrorSeverity(severity.lower())
    effective_logger = logger or globals()["logger"]
    effective_logger.log(
        _LOG_LEVELS[severity],
        f"Error in {context}: {error}",
        exc_info=severity in (ErrorSeverity.DEBUG, ErrorSeverity.CRITICAL),
    )
    if reraise:
        raise error


def handle_config_error(error: Exception, context: str, **kwargs) -> None:
    handle_error(error, f"config {context}", **kwargs)


def handle_file_error(error: Exception, context: str, **kwargs) -> None:
    handle_error(error, f"file {context}", **kwargs)


def handle_cli_error(error: Exception, context: str, exit_code: int = 1, **kwargs) -> None:
    """Log a CLI failure and exit with ``exit_code``."""
    kwargs.setdefault("severity", ErrorSeverity.ERROR)
    handle_error(error, f"CLI {context}", reraise=False, **kwargs)
    sys.exit(exit_code)
