"""Data models for the local GPT assistant."""

from .action import Action, ActionResult, InferenceResult, TokenUsage
from .api import (
    ActionRequest,
    ActionResponse,
    EnhanceRequest,
    EnhanceResponse,
    ResolvePromptRequest,
    ResolvePromptResponse,
    TagStatsResponse,
    TokenEstimateRequest,
    TokenEstimateResponse,
)
from .document import ChunkingConfig, DocumentChunk, LinkedDocument, LinkSource
from .prompt import DisplayOptions, ProcessResult, PromptContext
from .retrieval import RetrievalOutcome, RetrievalResult

__all__ = [
    # Action
    "Action",
    "ActionResult",
    "InferenceResult",
    "TokenUsage",
    # API
    "ActionRequest",
    "ActionResponse",
    "EnhanceRequest",
    "EnhanceResponse",
    "ResolvePromptRequest",
    "ResolvePromptResponse",
    "TagStatsResponse",
    "TokenEstimateRequest",
    "TokenEstimateResponse",
    # Document
    "ChunkingConfig",
    "DocumentChunk",
    "LinkedDocument",
    "LinkSource",
    # Prompt
    "DisplayOptions",
    "ProcessResult",
    "PromptContext",
    # Retrieval
    "RetrievalOutcome",
    "RetrievalResult",
]
