"""Tests for cancellation, error reporting and progress tracking."""

import asyncio

import pytest

from localgpt.core import (
    CancellationToken,
    DocumentNotFoundError,
    EmbeddingError,
    LLMError,
    LocalGPTError,
    LoggingErrorReporter,
    OperationCancelledError,
    ProgressTracker,
    guard,
)


class TestCancellationToken:
    """Tests for CancellationToken."""

    def test_cancel_fires_callbacks_once(self):
        token = CancellationToken()
        calls = []
        token.add_callback(lambda: calls.append("abort"))

        token.cancel()
        token.cancel()

        assert token.cancelled is True
        assert calls == ["abort"]

    def test_callback_added_after_cancel_runs_immediately(self):
        token = CancellationToken()
        token.cancel()
        calls = []

        token.add_callback(lambda: calls.append("abort"))

        assert calls == ["abort"]

    def test_raise_if_cancelled(self):
        token = CancellationToken()
        token.raise_if_cancelled("links")
        token.cancel()

        with pytest.raises(OperationCancelledError) as exc_info:
            token.raise_if_cancelled("links")

        assert exc_info.value.phase == "links"
        assert "during links" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_guard_returns_result(self):
        token = CancellationToken()

        async def work():
            return 42

        assert await token.guard(work(), "work") == 42

    @pytest.mark.asyncio
    async def test_guard_propagates_errors(self):
        token = CancellationToken()

        async def work():
            raise EmbeddingError("down")

        with pytest.raises(EmbeddingError):
            await token.guard(work())

    @pytest.mark.asyncio
    async def test_guard_rejects_when_already_cancelled(self):
        token = CancellationToken()
        token.cancel()
        started = []

        async def work():
            started.append(True)

        with pytest.raises(OperationCancelledError):
            await token.guard(work(), "embedding")

        assert started == []

    @pytest.mark.asyncio
    async def test_guard_aborts_in_flight_call(self):
        token = CancellationToken()
        entered = asyncio.Event()
        aborted = []

        async def work():
            entered.set()
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                aborted.append(True)
                raise

        task = asyncio.create_task(token.guard(work(), "inference"))
        await entered.wait()
        token.cancel()

        with pytest.raises(OperationCancelledError):
            await task

        assert aborted == [True]

    @pytest.mark.asyncio
    async def test_guard_discards_error_raised_while_aborting(self):
        token = CancellationToken()
        entered = asyncio.Event()

        async def work():
            entered.set()
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                raise ConnectionError("request aborted")

        task = asyncio.create_task(token.guard(work(), "embedding"))
        await entered.wait()
        token.cancel()

        with pytest.raises(OperationCancelledError) as exc_info:
            await task

        assert exc_info.value.phase == "embedding"


class TestErrorBoundary:
    """Tests for the guard() error boundary."""

    @pytest.mark.asyncio
    async def test_returns_operation_result(self, error_reporter):
        async def operation():
            return "context"

        assert await guard(operation, error_reporter, {}, default="") == "context"
        assert error_reporter.reports == []

    @pytest.mark.asyncio
    async def test_failure_reported_and_default_returned(self, error_reporter):
        async def operation():
            raise EmbeddingError("model missing")

        result = await guard(operation, error_reporter, {"operation": "test"}, default="")

        assert result == ""
        assert len(error_reporter.reports) == 1
        assert error_reporter.reports[0][1] == {"operation": "test"}

    @pytest.mark.asyncio
    async def test_cancellation_not_reported(self, error_reporter):
        async def operation():
            raise OperationCancelledError("query")

        with pytest.raises(OperationCancelledError):
            await guard(operation, error_reporter, {}, default="")

        assert error_reporter.reports == []

    def test_logging_reporter_keeps_bounded_history(self):
        reporter = LoggingErrorReporter(max_history=2)

        for i in range(3):
            reporter.report(RuntimeError(f"failure {i}"), {"operation": "test"})

        assert [str(r.error) for r in reporter.history] == ["failure 1", "failure 2"]

    def test_record_message_prefers_context(self):
        reporter = LoggingErrorReporter()
        reporter.report(EmbeddingError("raw"), {"message": "Friendly message"})
        reporter.report(EmbeddingError("raw"), {})

        assert [r.message for r in reporter.history] == ["Friendly message", "raw"]


class TestExceptions:
    """Tests for the exception hierarchy."""

    def test_details_carried(self):
        error = DocumentNotFoundError("Missing.md")

        assert isinstance(error, LocalGPTError)
        assert error.message == "Document not found: Missing.md"
        assert error.details == {"path": "Missing.md"}

    def test_llm_error_model(self):
        assert LLMError("timeout", "llama3.2").details == {"model": "llama3.2"}
        assert LLMError("timeout").details == {}

    def test_cancellation_is_not_an_assistant_error(self):
        assert not issubclass(OperationCancelledError, LocalGPTError)


class TestProgressTracker:
    """Tests for ProgressTracker."""

    def test_percentage(self):
        tracker = ProgressTracker()
        tracker.add_total_steps(4)
        tracker.complete_steps(1)

        assert tracker.percentage == 25.0

    def test_completed_never_exceeds_total(self):
        tracker = ProgressTracker()
        tracker.add_total_steps(2)
        tracker.complete_steps(5)

        assert tracker.completed_steps == 2

    def test_totals_can_grow_during_run(self):
        tracker = ProgressTracker()
        tracker.add_total_steps(2)
        tracker.complete_steps(2)
        tracker.add_total_steps(3)
        tracker.complete_steps(1)

        assert (tracker.completed_steps, tracker.total_steps) == (3, 5)

    def test_reset(self):
        tracker = ProgressTracker()
        tracker.add_total_steps(3)
        tracker.reset()

        assert tracker.percentage == 0.0
