"""
FastAPI application exposing the pokemon service over HTTP.
"""

from __future__ import annotations

import time
import uuid
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .cancellation import CallContext
from .client import PokeAPIClient
from .config import Settings, get_settings
from .errors import (
    NotFoundError,
    PokeProxyError,
    UpstreamError,
    ValidationError,
)
from .logger import StructuredLogger, get_logger
from .models import Pokemon, PokemonComparison, PokemonCount, PokemonList
from .service import PokemonService

DEFAULT_LIMIT = 20
DEFAULT_OFFSET = 0


def error_response(status: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={
            "error": HTTPStatus(status).phrase,
            "message": message,
            "code": status,
        },
    )


def map_error(exc: PokeProxyError, logger: StructuredLogger) -> JSONResponse:
    """Translate a domain error into an HTTP error envelope."""
    if isinstance(exc, NotFoundError):
        return error_response(404, "Pokemon not found")
    if isinstance(exc, ValidationError):
        return error_response(400, str(exc))
    if isinstance(exc, UpstreamError):
        logger.error("External API error", error=str(exc))
        return error_response(502, "Failed to fetch data from external API")
    logger.error("Unexpected error", error=str(exc), error_type=type(exc).__name__)
    return error_response(500, "Internal server error")


def _parse_int(raw: Optional[str], default: int) -> Optional[int]:
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return None


def create_app(
    service: Optional[PokemonService] = None,
    settings: Optional[Settings] = None,
    logger: Optional[StructuredLogger] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        service: Pokemon service (default: one backed by PokeAPIClient)
        settings: Runtime settings (default: from the environment)
        logger: Structured logger (default: the global one)
    """
    settings = settings or get_settings()
    logger = logger or get_logger(level=settings.log_level, fmt=settings.log_format)
    if service is None:
        client = PokeAPIClient(
            settings.pokeapi_base_url,
            timeout=settings.pokeapi_timeout,
            logger=logger,
        )
        service = PokemonService(client, logger=logger)

    app = FastAPI(
        title="pokeproxy",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    def new_context() -> CallContext:
        return CallContext(timeout=settings.request_timeout)

    @app.exception_handler(PokeProxyError)
    async def handle_domain_error(request: Request, exc: PokeProxyError) -> JSONResponse:
        return map_error(exc, logger)

    # Innermost: turn unhandled exceptions into a 500 envelope
    @app.middleware("http")
    async def recovery(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception:
            logger.exception("Panic recovered", method=request.method, path=request.url.path)
            return JSONResponse(
                status_code=500,
                content={
                    "error": "Internal Server Error",
                    "message": "An unexpected error occurred",
                    "code": 500,
                },
            )

    @app.middleware("http")
    async def request_logging(request: Request, call_next):
        start = time.monotonic()
        request_id = str(uuid.uuid4())

        logger.info(
            "Incoming request",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            query=request.url.query,
            remote_addr=request.client.host if request.client else "",
            user_agent=request.headers.get("user-agent", ""),
        )

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        duration_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "Request completed",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=duration_ms,
        )
        return response

    # Outermost, so error responses carry CORS headers too
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_allowed_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    @app.get("/health")
    def health_check() -> dict:
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/api/v1/pokemon", response_model=PokemonList)
    def list_pokemon(limit: Optional[str] = None, offset: Optional[str] = None):
        parsed_limit = _parse_int(limit, DEFAULT_LIMIT)
        if parsed_limit is None:
            logger.debug("Invalid limit parameter", limit=limit)
            return error_response(400, "Invalid limit parameter")
        parsed_offset = _parse_int(offset, DEFAULT_OFFSET)
        if parsed_offset is None:
            logger.debug("Invalid offset parameter", offset=offset)
            return error_response(400, "Invalid offset parameter")

        return service.list(new_context(), parsed_limit, parsed_offset)

    @app.get("/api/v1/pokemon/count", response_model=PokemonCount)
    def count_pokemon():
        return service.get_count(new_context())

    @app.get("/api/v1/pokemon/compare", response_model=PokemonComparison)
    def compare_pokemon(pokemon1: str = "", pokemon2: str = ""):
        return service.compare(new_context(), pokemon1, pokemon2)

    @app.get("/api/v1/pokemon/{name_or_id}", response_model=Pokemon)
    def get_pokemon(name_or_id: str):
        return service.get_by_key(new_context(), name_or_id)

    return app
