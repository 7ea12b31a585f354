"""Token estimation endpoint."""

from fastapi import APIRouter

from ...models import TokenEstimateRequest, TokenEstimateResponse
from ...utils import estimate_token_usage

router = APIRouter(prefix="/tokens", tags=["Tokens"])


@router.post("/estimate", response_model=TokenEstimateResponse)
async def estimate(request: TokenEstimateRequest) -> TokenEstimateResponse:
    """Heuristic token counts for an exchange."""
    usage = estimate_token_usage(request.input_text, request.output_text, request.system_prompt)
    return TokenEstimateResponse(
        input_tokens=usage.input_tokens,
        output_tokens=usage.output_tokens,
        total_tokens=usage.total_tokens,
    )
