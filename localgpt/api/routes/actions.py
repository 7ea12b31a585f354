"""Action execution endpoints."""

from fastapi import APIRouter
from pydantic import BaseModel

from ...models import ActionRequest, ActionResponse
from ...session import get_session

router = APIRouter(prefix="/actions", tags=["Actions"])


class AbortResponse(BaseModel):
    """Number of in-flight actions that were cancelled."""
    aborted: int


@router.post("/run", response_model=ActionResponse)
async def run_action(request: ActionRequest) -> ActionResponse:
    """Run an action and return the formatted output for insertion."""
    result = await get_session().run_action(
        request.action.to_dataclass(),
        request.selected_text,
        request.active_document,
    )
    return ActionResponse.from_dataclass(result)


@router.post("/abort", response_model=AbortResponse)
async def abort_actions() -> AbortResponse:
    """Cancel every action currently in flight."""
    return AbortResponse(aborted=get_session().abort_all())
