import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ..core.chat import PIPELINE_ERROR_REPLY, run_chat
from ..core.gateway import LLMGateway
from ..middleware.rate_limit import FREE_QUERY_LIMIT_REPLY, RateLimiter, RateLimitExceeded
from ..providers.base import ChainDataProvider
from ..services.address import is_valid_address
from ..services.chains import NetworkRegistry
from ..types import ChatRequest, ChatResponse, ErrorResponse
from .deps import get_chain_client, get_gateway, get_limiter, get_registry

router = APIRouter()
_logger = logging.getLogger(__name__)


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={
        400: {"model": ErrorResponse},
        429: {"model": ChatResponse},
        500: {"model": ChatResponse},
    },
)
async def chat_endpoint(
    payload: ChatRequest,
    request: Request,
    chain_client: ChainDataProvider = Depends(get_chain_client),
    gateway: LLMGateway = Depends(get_gateway),
    registry: NetworkRegistry = Depends(get_registry),
    limiter: RateLimiter = Depends(get_limiter),
):
    """Chat endpoint for conversational wallet and chain questions"""

    if not payload.has_input:
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(error="Message or file is required").model_dump(),
        )

    try:
        await limiter.check_request(request, has_wallet=is_valid_address(payload.wallet_address))
    except RateLimitExceeded as e:
        return JSONResponse(
            status_code=429,
            content=ChatResponse(response=FREE_QUERY_LIMIT_REPLY).model_dump(),
            headers={
                "Retry-After": str(e.retry_after),
                "X-RateLimit-Limit": str(e.limit),
                "X-RateLimit-Window": str(e.window_seconds),
            },
        )

    try:
        return await run_chat(payload, chain_client, gateway, registry)
    except Exception:
        _logger.exception("Chat processing error")
        return JSONResponse(
            status_code=500,
            content=ChatResponse(response=PIPELINE_ERROR_REPLY).model_dump(),
        )
