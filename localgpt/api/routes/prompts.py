"""Prompt template resolution endpoint."""

from fastapi import APIRouter

from ...models import ResolvePromptRequest, ResolvePromptResponse
from ...session import get_session

router = APIRouter(prefix="/prompts", tags=["Prompts"])


@router.post("/resolve", response_model=ResolvePromptResponse)
async def resolve_prompt(request: ResolvePromptRequest) -> ResolvePromptResponse:
    """Resolve a template against a selection and optional context.

    Control markers are stripped and reported as flags; a flag is null when
    the template does not set it.
    """
    result = await get_session().resolve_prompt(
        request.template,
        selected_text=request.selected_text,
        context_text=request.context_text,
        active_document=request.active_document,
        use_vault=request.use_vault,
    )

    return ResolvePromptResponse(
        prompt=result.prompt,
        show_model_info=result.show_model_info,
        show_performance=result.show_performance,
    )
