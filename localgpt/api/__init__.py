"""API module for the local GPT assistant."""

from .routes import (
    actions_router,
    context_router,
    health_router,
    prompts_router,
    tags_router,
    tokens_router,
)

__all__ = [
    "actions_router",
    "context_router",
    "health_router",
    "prompts_router",
    "tags_router",
    "tokens_router",
]
