"""Cooperative cancellation for one user-triggered action.

A single token is created per action and threaded through every suspension
point of the retrieval and inference paths.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from .logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class OperationCancelledError(Exception):
    """Raised inside the core when the action's token was cancelled.

    Not a LocalGPTError: cancellation is an outcome, never reported as a failure.
    """

    def __init__(self, phase: str | None = None):
        super().__init__(f"Operation cancelled{f' during {phase}' if phase else ''}")
        self.phase = phase


class CancellationToken:
    """Shared cancellation signal with collaborator abort hooks."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._callbacks: list[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Signal cancellation and fire registered abort hooks once."""
        if self._event.is_set():
            return
        self._event.set()
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def add_callback(self, callback: Callable[[], None]) -> None:
        """Register an abort hook; runs immediately if already cancelled."""
        if self._event.is_set():
            callback()
        else:
            self._callbacks.append(callback)

    def raise_if_cancelled(self, phase: str | None = None) -> None:
        if self._event.is_set():
            raise OperationCancelledError(phase)

    async def guard(self, awaitable: Awaitable[T], phase: str | None = None) -> T:
        """Await a collaborator call, aborting it as soon as the token fires.

        Raises:
            OperationCancelledError: If the token is cancelled before or while
                the call is in flight. The in-flight task is cancelled and any
                error it raises while aborting is discarded.
        """
        if self._event.is_set():
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise OperationCancelledError(phase)

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if not self._event.is_set():
            return task.result()

        # Whatever the aborted call ends with is discarded
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.debug("Aborted call raised", phase=phase, error=str(e), error_type=type(e).__name__)
        raise OperationCancelledError(phase)
