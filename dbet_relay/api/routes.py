"""
FastAPI routes for the dBet resolution relay.

Public metadata for position NFTs, a protected write endpoint for the
resolver and a public read endpoint for the oracle callback.
"""

import time
import traceback
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from .. import __version__
from ..config import Settings, get_settings
from ..errors import InvalidInputError, RelayError
from ..services.chain_reader import MAX_UINT256, ChainReader, is_valid_address
from ..services.metadata import AssetTable, MetadataRenderer
from ..services.resolution_store import (
    InMemoryResolutionStore,
    RedisResolutionStore,
    ResolutionRelay,
    ResolutionStore,
)
from ..utils.logging import get_logger, log_context
from .auth import require_api_key
from .rate_limit import make_limiter, rate_limit_handler
from .schemas import (
    ErrorResponse,
    HealthResponse,
    MetadataResponse,
    ResolutionResponse,
    ResolveMarketRequest,
    ResolveMarketResponse,
)

logger = get_logger(__name__)

router = APIRouter(tags=["dBet Relay"])

METADATA_FAILURE = "Failed to fetch metadata."


# ===================
# Dependencies
# ===================

def get_relay(request: Request) -> ResolutionRelay:
    return request.app.state.relay


def get_renderer(request: Request) -> MetadataRenderer:
    return request.app.state.renderer


def parse_token_id(token_id: str) -> int:
    """Parse a uint256 token id from a path segment."""
    if not (token_id.isascii() and token_id.isdigit()):
        raise InvalidInputError("Invalid token id.")
    value = int(token_id)
    if value > MAX_UINT256:
        raise InvalidInputError("Invalid token id.")
    return value


# ===================
# Routes
# ===================

@router.get(
    "/metadata/{market_address}/{token_id}",
    response_model=MetadataResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def get_metadata(
    market_address: str,
    token_id: str,
    renderer: MetadataRenderer = Depends(get_renderer),
):
    """Dynamic metadata for a position NFT."""
    if not is_valid_address(market_address):
        raise InvalidInputError("Invalid market contract address.")
    parsed_token_id = parse_token_id(token_id)

    with log_context(market=market_address, token_id=token_id):
        try:
            return await renderer.render(market_address, parsed_token_id)
        except Exception as e:
            logger.error(
                "metadata_render_failed",
                error_type=type(e).__name__,
                error=str(e),
                exc_info=True,
            )
            return JSONResponse(status_code=500, content={"error": METADATA_FAILURE})


@router.post(
    "/resolve-market",
    response_model=ResolveMarketResponse,
    dependencies=[Depends(require_api_key)],
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {
                    "schema": ResolveMarketRequest.model_json_schema(by_alias=True),
                },
            },
        },
    },
)
async def resolve_market(
    request: Request,
    relay: ResolutionRelay = Depends(get_relay),
):
    """Store a market's winning option (resolver only).

    The body is parsed in the handler, after the API key check has run.
    """
    try:
        payload = await request.json()
    except ValueError as e:
        raise InvalidInputError("Invalid JSON body.") from e
    try:
        body = ResolveMarketRequest.model_validate(payload)
    except ValidationError as e:
        raise InvalidInputError(_validation_message(e.errors())) from e

    resolution = await relay.store_resolution(body.market_address, body.winning_option_index)
    return ResolveMarketResponse(
        market=resolution.market_address,
        winner=resolution.winning_option_index,
    )


@router.get(
    "/get-resolution/{market_address}",
    response_model=ResolutionResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_resolution(
    market_address: str,
    relay: ResolutionRelay = Depends(get_relay),
):
    """Stored resolution for a market, pulled by the oracle callback."""
    index = await relay.fetch_resolution(market_address)
    return ResolutionResponse(winningOptionIndex=index)


@router.get("/health", response_model=HealthResponse)
async def health(request: Request):
    settings: Settings = request.app.state.settings
    return HealthResponse(
        status="ok",
        service="dbet-relay",
        version=__version__,
        api_key_configured=settings.is_api_key_configured,
    )


# ===================
# App factory
# ===================

def build_store(settings: Settings) -> ResolutionStore:
    """Redis-backed store when REDIS_URL is set, in-memory otherwise."""
    if settings.redis_url:
        return RedisResolutionStore(settings.redis_url)
    return InMemoryResolutionStore()


def _validation_message(errors: list[dict]) -> str:
    fields = []
    for error in errors:
        if error.get("type") == "json_invalid":
            return "Invalid JSON body."
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        fields.append(".".join(loc) or "body")
    if not fields:
        return "Invalid request."
    return f"Invalid or missing fields: {', '.join(dict.fromkeys(fields))}"


def create_api_app(
    settings: Optional[Settings] = None,
    relay: Optional[ResolutionRelay] = None,
    chain_reader: Optional[ChainReader] = None,
    renderer: Optional[MetadataRenderer] = None,
) -> FastAPI:
    """Create the relay application. Collaborators default to ones built from settings."""
    settings = settings or get_settings()

    if relay is None:
        relay = ResolutionRelay(build_store(settings))
    if renderer is None:
        if chain_reader is None:
            chain_reader = ChainReader.from_rpc_url(
                settings.sepolia_rpc_url,
                timeout=settings.chain_call_timeout_seconds,
                option_count=settings.market_option_count,
            )
        renderer = MetadataRenderer(
            chain_reader,
            assets=AssetTable(settings.asset_uris),
            description=settings.metadata_description,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("relay_started", version=__version__, store=type(relay.store).__name__)
        if not settings.is_api_key_configured:
            logger.warning(
                "api_key_not_configured",
                detail="API_KEY is unset; /resolve-market accepts unauthenticated writes",
            )
        yield
        await relay.store.close()
        await renderer.chain_reader.close()
        logger.info("relay_stopped")

    app = FastAPI(
        title="dBet Resolution Relay",
        description="Resolution relay and dynamic NFT metadata for dBet prediction markets",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.relay = relay
    app.state.renderer = renderer

    # Marketplaces fetch metadata cross-origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    limiter = make_limiter(settings)
    # Oracle nodes and health checks must never see a 429
    limiter.exempt(get_resolution)
    limiter.exempt(health)
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)

    @app.middleware("http")
    async def timing_middleware(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Response-Time"] = f"{elapsed_ms:.1f}ms"
        logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round(elapsed_ms, 1),
        )
        return response

    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError):
        if exc.is_server_error:
            logger.error(
                "request_failed",
                path=str(request.url.path),
                method=request.method,
                error_type=type(exc).__name__,
                error=exc.message,
                traceback="".join(traceback.format_exception(exc)),
            )
        return JSONResponse(status_code=exc.status_code, content={"error": exc.client_message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": _validation_message(exc.errors())})

    # Global exception handler: catches unhandled errors, returns clean JSON
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        if isinstance(exc, HTTPException):
            raise exc
        logger.error(
            "unhandled_exception",
            path=str(request.url.path),
            method=request.method,
            error_type=type(exc).__name__,
            error=str(exc),
            traceback="".join(traceback.format_exception(exc)),
        )
        return JSONResponse(status_code=500, content={"error": "Internal server error."})

    app.include_router(router)
    return app
