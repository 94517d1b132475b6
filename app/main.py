import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api import chain, chat, health
from .config import settings
from .core.gateway import build_gateway
from .logging_config import setup_logging
from .middleware import RateLimiter, RequestLoggingMiddleware
from .providers.alchemy import AlchemyProvider
from .services.chains import NetworkRegistry
from .types import ErrorResponse

_logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.log_level)

    registry = NetworkRegistry()
    chain_client = AlchemyProvider(registry)
    gateway = build_gateway()

    app.state.registry = registry
    app.state.chain_client = chain_client
    app.state.gateway = gateway
    app.state.rate_limiter = RateLimiter()

    if not settings.has_alchemy_key:
        _logger.warning("ALCHEMY_API_KEY is not set; chain lookups will report the provider as unconfigured")
    _logger.info("Chain chat API ready networks=%s", ",".join(registry.keys()))

    try:
        yield
    finally:
        await chain_client.aclose()
        await gateway.aclose()
        _logger.info("Chain chat API shut down")


# Create FastAPI app
app = FastAPI(
    title="Chain Chat API",
    description="Conversational Web3 assistant backed by live Alchemy chain data",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials and "*" not in settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=str(exc.detail)).model_dump(),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    )
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(error="Invalid request", details=problems or None).model_dump(),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    _logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(error="Internal server error").model_dump(),
    )


# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(chat.router, tags=["Chat"])
app.include_router(chain.router, tags=["Chain"])


@app.get("/")
async def root():
    """Root endpoint with basic info"""
    return {
        "name": "Chain Chat API",
        "version": "0.1.0",
        "description": "Conversational Web3 assistant backed by live Alchemy chain data",
        "assistant": settings.assistant_name,
        "docs": "/docs",
        "health": "/healthz"
    }


def main() -> None:
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    main()
