"""Action execution models.

An action is a user-defined prompt template (plus optional system prompt)
that runs against the current selection.
"""

from dataclasses import dataclass, field
from typing import Any

from .prompt import DisplayOptions
from .retrieval import RetrievalOutcome


@dataclass
class Action:
    """A user-configured AI action."""
    name: str
    prompt: str = ""
    system: str | None = None
    temperature: float | None = None
    replace: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "prompt": self.prompt,
            "system": self.system,
            "temperature": self.temperature,
            "replace": self.replace,
        }


@dataclass
class TokenUsage:
    """Token counts and timings for one inference call.

    Counts are None when the provider did not report them; they are then
    filled by the estimator.
    """
    input_tokens: int | None = None
    output_tokens: int | None = None
    total_tokens: int | None = None
    estimated: bool = False
    first_token_latency_ms: int | None = None
    generation_speed: int | None = None  # tokens per second
    prompt_eval_ms: int | None = None
    eval_ms: int | None = None
    load_ms: int | None = None

    @property
    def is_complete(self) -> bool:
        return self.total_tokens is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "total_tokens": self.total_tokens,
            "estimated": self.estimated,
            "first_token_latency_ms": self.first_token_latency_ms,
            "generation_speed": self.generation_speed,
            "prompt_eval_ms": self.prompt_eval_ms,
            "eval_ms": self.eval_ms,
            "load_ms": self.load_ms,
        }


@dataclass
class ActionResult:
    """Outcome of running an action end to end."""
    action_name: str
    output: str
    raw_text: str
    model: str
    display: DisplayOptions
    usage: TokenUsage = field(default_factory=TokenUsage)
    total_time_ms: int = 0
    replace: bool = False
    cancelled: bool = False
    context_outcome: RetrievalOutcome = RetrievalOutcome.SKIPPED

    def to_dict(self) -> dict[str, Any]:
        return {
            "action_name": self.action_name,
            "output": self.output,
            "raw_text": self.raw_text,
            "model": self.model,
            "show_model_info": self.display.show_model_info,
            "show_performance": self.display.show_performance,
            "usage": self.usage.to_dict(),
            "total_time_ms": self.total_time_ms,
            "replace": self.replace,
            "cancelled": self.cancelled,
            "context_outcome": self.context_outcome.value,
        }


@dataclass
class InferenceResult:
    """Full text streamed from the model plus whatever usage it reported."""
    text: str
    model: str
    usage: TokenUsage = field(default_factory=TokenUsage)
