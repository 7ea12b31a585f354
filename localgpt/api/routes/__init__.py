"""API route modules."""

from .actions import router as actions_router
from .context import router as context_router
from .health import router as health_router
from .prompts import router as prompts_router
from .tags import router as tags_router
from .tokens import router as tokens_router

__all__ = [
    "actions_router",
    "context_router",
    "health_router",
    "prompts_router",
    "tags_router",
    "tokens_router",
]
