"""Retrieval context endpoint."""

from fastapi import APIRouter

from ...models import EnhanceRequest, EnhanceResponse
from ...session import get_session

router = APIRouter(prefix="/context", tags=["Context"])


@router.post("/enhance", response_model=EnhanceResponse)
async def enhance_context(request: EnhanceRequest) -> EnhanceResponse:
    """Build ranked context from the documents linked in the selection.

    Never fails on retrieval errors: the outcome field tells an empty context
    caused by a failure apart from one caused by cancellation or no links.
    """
    result = await get_session().enhance(request.selected_text, request.active_document)
    return EnhanceResponse.from_dataclass(result)
