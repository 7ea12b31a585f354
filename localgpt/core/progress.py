"""Progress reporting collaborator used by the retrieval pipeline."""

from typing import Protocol


class ProgressReporter(Protocol):
    """Receives work totals and completed steps for one action."""

    def add_total_steps(self, steps: int) -> None: ...

    def complete_steps(self, steps: int) -> None: ...


class NullProgressReporter:
    """Reporter that discards all updates."""

    def add_total_steps(self, steps: int) -> None:
        pass

    def complete_steps(self, steps: int) -> None:
        pass


class ProgressTracker:
    """In-memory reporter with a monotonically non-decreasing completed count."""

    def __init__(self) -> None:
        self.total_steps = 0
        self.completed_steps = 0

    def add_total_steps(self, steps: int) -> None:
        self.total_steps += max(steps, 0)

    def complete_steps(self, steps: int) -> None:
        self.completed_steps = min(
            self.completed_steps + max(steps, 0),
            max(self.total_steps, self.completed_steps),
        )

    @property
    def percentage(self) -> float:
        if self.total_steps == 0:
            return 0.0
        return (self.completed_steps / self.total_steps) * 100

    def reset(self) -> None:
        self.total_steps = 0
        self.completed_steps = 0
