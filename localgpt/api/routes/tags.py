"""Tag statistics endpoints."""

from fastapi import APIRouter, Query

from ...models import TagStatsResponse
from ...session import get_session

router = APIRouter(prefix="/tags", tags=["Tags"])


def _to_response(stats: dict[str, int], limit: int | None = None) -> TagStatsResponse:
    ordered = sorted(stats.items(), key=lambda item: (-item[1], item[0]))
    if limit is not None:
        ordered = ordered[:limit]
    return TagStatsResponse(total_tags=len(stats), tags=dict(ordered))


@router.get("", response_model=TagStatsResponse)
async def get_tags(
    limit: int | None = Query(default=None, ge=1, description="Only the most used tags"),
) -> TagStatsResponse:
    """Reference counts per tag, most used first."""
    stats = await get_session().tag_stats()
    return _to_response(stats, limit)


@router.post("/refresh", response_model=TagStatsResponse)
async def refresh_tags() -> TagStatsResponse:
    """Rescan the vault and rebuild the tag cache."""
    session = get_session()
    session.refresh_vault()
    return _to_response(await session.tag_stats(force_refresh=True))
