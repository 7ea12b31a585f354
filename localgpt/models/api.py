"""Request and response models for the local API.

These models define the contracts the editor plugin talks to.
"""

from pydantic import BaseModel, Field

from .action import Action, ActionResult
from .retrieval import RetrievalResult


class ResolvePromptRequest(BaseModel):
    """Request to resolve a prompt template."""
    template: str = Field(default="", description="Template containing {{=...=}} markers")
    selected_text: str = ""
    context_text: str = ""
    active_document: str | None = Field(
        default=None,
        description="Vault-relative path of the active document, used by tag markers",
    )
    use_vault: bool = Field(
        default=True,
        description="Give the resolver access to the vault (forces the async path)",
    )

    model_config = {"extra": "forbid"}


class ResolvePromptResponse(BaseModel):
    """Resolved prompt; flags are null when the template does not set them."""
    prompt: str
    show_model_info: bool | None = None
    show_performance: bool | None = None


class EnhanceRequest(BaseModel):
    """Request to build retrieval context for a selection."""
    selected_text: str = Field(..., description="Selection whose links drive retrieval")
    active_document: str = Field(..., min_length=1)

    model_config = {"extra": "forbid"}


class LinkedDocumentResponse(BaseModel):
    path: str
    title: str
    source: str


class EnhanceResponse(BaseModel):
    """Retrieved context and how the run ended."""
    context: str
    outcome: str
    documents: list[LinkedDocumentResponse] = Field(default_factory=list)
    chunk_count: int = 0
    retrieval_time_ms: float = 0.0

    @classmethod
    def from_dataclass(cls, result: RetrievalResult) -> "EnhanceResponse":
        return cls(
            context=result.context,
            outcome=result.outcome.value,
            documents=[
                LinkedDocumentResponse(path=d.path, title=d.title, source=d.source.value)
                for d in result.documents
            ],
            chunk_count=result.chunk_count,
            retrieval_time_ms=round(result.retrieval_time_ms, 1),
        )


class ActionModel(BaseModel):
    """A user-configured action."""
    name: str = Field(..., min_length=1)
    prompt: str = ""
    system: str | None = None
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    replace: bool = False

    def to_dataclass(self) -> Action:
        return Action(
            name=self.name,
            prompt=self.prompt,
            system=self.system,
            temperature=self.temperature,
            replace=self.replace,
        )


class ActionRequest(BaseModel):
    """Request to run an action against a selection."""
    action: ActionModel
    selected_text: str = ""
    active_document: str | None = None

    model_config = {"extra": "forbid"}


class TokenUsageResponse(BaseModel):
    input_tokens: int | None = None
    output_tokens: int | None = None
    total_tokens: int | None = None
    estimated: bool = False
    first_token_latency_ms: int | None = None
    generation_speed: int | None = None


class ActionResponse(BaseModel):
    """Formatted action output ready for insertion by the editor."""
    action_name: str
    output: str
    model: str
    show_model_info: bool
    show_performance: bool
    usage: TokenUsageResponse
    total_time_ms: int
    replace: bool
    cancelled: bool
    context_outcome: str

    @classmethod
    def from_dataclass(cls, result: ActionResult) -> "ActionResponse":
        return cls(
            action_name=result.action_name,
            output=result.output,
            model=result.model,
            show_model_info=result.display.show_model_info,
            show_performance=result.display.show_performance,
            usage=TokenUsageResponse(
                input_tokens=result.usage.input_tokens,
                output_tokens=result.usage.output_tokens,
                total_tokens=result.usage.total_tokens,
                estimated=result.usage.estimated,
                first_token_latency_ms=result.usage.first_token_latency_ms,
                generation_speed=result.usage.generation_speed,
            ),
            total_time_ms=result.total_time_ms,
            replace=result.replace,
            cancelled=result.cancelled,
            context_outcome=result.context_outcome.value,
        )


class TagStatsResponse(BaseModel):
    """Tag reference counts across the vault."""
    total_tags: int
    tags: dict[str, int]


class TokenEstimateRequest(BaseModel):
    input_text: str = ""
    output_text: str = ""
    system_prompt: str | None = None


class TokenEstimateResponse(BaseModel):
    input_tokens: int
    output_tokens: int
    total_tokens: int
