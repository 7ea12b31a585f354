"""Health check endpoint."""

from fastapi import APIRouter
from pydantic import BaseModel

from ...session import get_session

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    vault_dir: str
    generation_model: str
    embedding_model: str
    active_actions: int


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check API health status."""
    session = get_session()

    return HealthResponse(
        status="healthy",
        vault_dir=str(session.settings.vault_dir),
        generation_model=session.settings.generation_model,
        embedding_model=session.settings.embedding_model,
        active_actions=session.active_count,
    )
