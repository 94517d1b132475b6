"""Request-scoped access to the clients built in the application lifespan."""

from fastapi import HTTPException, Request

from ..core.gateway import LLMGateway
from ..middleware.rate_limit import RateLimiter, get_rate_limiter
from ..providers.base import ChainDataProvider
from ..services.chains import NetworkRegistry


def get_registry(request: Request) -> NetworkRegistry:
    registry = getattr(request.app.state, "registry", None)
    return registry if registry is not None else NetworkRegistry()


def get_chain_client(request: Request) -> ChainDataProvider:
    client = getattr(request.app.state, "chain_client", None)
    if client is None:
        raise HTTPException(status_code=503, detail="Blockchain data client is not initialised")
    return client


def get_gateway(request: Request) -> LLMGateway:
    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None:
        raise HTTPException(status_code=503, detail="Chat service is not initialised")
    return gateway


def get_limiter(request: Request) -> RateLimiter:
    limiter = getattr(request.app.state, "rate_limiter", None)
    return limiter if limiter is not None else get_rate_limiter()
