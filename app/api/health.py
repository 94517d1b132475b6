from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..core.gateway import LLMGateway
from .deps import get_chain_client, get_gateway

router = APIRouter()


@router.get("/healthz")
async def health_check(
    deep: bool = False,
    chain_client=Depends(get_chain_client),
    gateway: LLMGateway = Depends(get_gateway),
) -> Dict[str, Any]:
    """Health check endpoint that verifies provider status"""

    provider_status: Dict[str, Any] = {}

    # Check Alchemy
    provider_status["alchemy"] = await chain_client.health_check()

    # LLM ping only with ?deep=true
    if gateway.provider is None:
        provider_status["llm"] = {"status": "unavailable", "reason": "API key not configured"}
    elif deep:
        provider_status["llm"] = await gateway.provider.health_check()
    else:
        provider_status["llm"] = {"status": "configured", "model": gateway.provider.model}

    all_healthy = all(
        status["status"] in ["healthy", "configured", "unavailable"]
        for status in provider_status.values()
    )

    available_providers = sum(
        1 for status in provider_status.values()
        if status["status"] in ["healthy", "configured"]
    )

    return {
        "status": "healthy" if all_healthy and available_providers > 0 else "degraded",
        "providers": provider_status,
        "available_providers": available_providers,
        "total_providers": len(provider_status)
    }
