"""Error reporting collaborator and the error-boundary wrapper.

The boundary is an explicit higher-order function rather than a decorator:
the reporter is injected by the caller that owns the action.
"""

from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol, TypeVar

from .cancellation import OperationCancelledError
from .exceptions import LocalGPTError
from .logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class ErrorReporter(Protocol):
    """Receives failures that were absorbed at a component boundary."""

    def report(self, error: Exception, context: dict[str, Any]) -> None: ...


@dataclass
class ErrorRecord:
    """One reported failure, kept for diagnostics."""
    error: Exception
    context: dict[str, Any]
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def message(self) -> str:
        return self.context.get("message") or str(self.error)


class LoggingErrorReporter:
    """Default reporter: logs the failure and keeps a bounded history."""

    def __init__(self, max_history: int = 100):
        self.history: deque[ErrorRecord] = deque(maxlen=max_history)

    def report(self, error: Exception, context: dict[str, Any]) -> None:
        self.history.append(ErrorRecord(error=error, context=context))

        details = error.details if isinstance(error, LocalGPTError) else {}
        logger.error(
            context.get("message", "Operation failed"),
            error=str(error),
            error_type=type(error).__name__,
            operation=context.get("operation"),
            details=details,
        )


async def guard(
    operation: Callable[[], Awaitable[T]],
    reporter: ErrorReporter,
    context: dict[str, Any],
    default: T,
) -> T:
    """Run an operation, forwarding failures to the reporter.

    Cancellation is re-raised untouched so callers can tell it apart from a
    failure.

    Args:
        operation: Zero-argument coroutine factory to run
        reporter: Reporter that receives any failure
        context: Context passed to the reporter (operation name, message, ...)
        default: Value returned when the operation fails

    Returns:
        The operation's result, or ``default`` on failure
    """
    try:
        return await operation()
    except OperationCancelledError:
        raise
    except Exception as e:
        reporter.report(e, context)
        return default
