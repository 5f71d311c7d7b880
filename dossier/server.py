"""FastAPI application for the property dossier service."""

from collections.abc import AsyncIterator, Awaitable, Callable
from functools import lru_cache
from typing import Any

import httpx
import structlog
from fastapi import Depends, FastAPI, HTTPException, Query, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from dossier import __version__
from dossier.config import DossierConfig, is_demo_mode_allowed
from dossier.demo import get_demo_response
from dossier.exceptions import (
    AddressValidationError,
    CompletionError,
    DossierParseError,
    DossierPipelineError,
    DossierSchemaError,
)
from dossier.geocoding import MAX_CANDIDATES, GeocodingClient
from dossier.logging import clear_context_fields, configure_structlog
from dossier.models import Dossier, GeocodeCandidate
from dossier.workflow import DossierAggregator

log = structlog.get_logger("dossier.server")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


# --- Request/Response schemas ---


class AnalyzePropertyRequest(BaseModel):
    """Incoming dossier request. A missing address is rejected by the pipeline, not here."""

    address: str | None = Field(
        default=None,
        description="Full UK property address, usually a geocoder display name",
        examples=["10 Downing Street, London"],
    )


class ErrorResponse(BaseModel):
    """Error envelope returned for every failed dossier request."""

    error: str = Field(description="Human-readable error message", examples=["Address is required"])
    details: str | None = Field(
        default=None,
        description="Best-effort diagnostic detail",
        examples=["upstream returned 429"],
    )


class HealthResponse(BaseModel):
    status: str = Field(examples=["ok"])
    version: str = Field(default="", examples=["0.1.0"])


# --- Dependencies ---


@lru_cache(maxsize=1)
def get_config() -> DossierConfig:
    return DossierConfig.from_env()


def get_aggregator(config: DossierConfig = Depends(get_config)) -> DossierAggregator:
    return DossierAggregator(config)


async def get_geocoder(config: DossierConfig = Depends(get_config)) -> AsyncIterator[GeocodingClient]:
    async with httpx.AsyncClient() as client:
        yield GeocodingClient(client, url=config.geocoder_url, user_agent=config.geocoder_user_agent)


# --- Exception handlers ---


def _error_response(error: str, details: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(error=error, details=details).model_dump(exclude_none=True),
        headers=CORS_HEADERS,
    )


def _error_details(exc: DossierPipelineError) -> str | None:
    if isinstance(exc, CompletionError):
        return exc.body[:500] or None
    if isinstance(exc, (DossierParseError, DossierSchemaError)):
        return exc.reason
    return None


async def _handle_pipeline_error(request: Request, exc: DossierPipelineError) -> JSONResponse:
    error_type = type(exc).__name__
    if isinstance(exc, AddressValidationError):
        log.warning("request.validation_error", error_type=error_type, detail=str(exc))
    else:
        log.error("request.pipeline_error", error_type=error_type, detail=str(exc))
    clear_context_fields()
    return _error_response(str(exc), _error_details(exc))


async def _handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    log.warning("request.invalid_body", detail=str(exc))
    return _error_response("Invalid request body", str(exc))


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    log.exception("request.unexpected_error", error=str(exc))
    clear_context_fields()
    return _error_response("An unexpected error occurred.", f"{type(exc).__name__}: {exc}")


# --- App factory ---


def get_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title="Property Dossier Service",
        description="""
AI-generated contractor dossiers for UK property addresses.

## Pipeline

1. **Query Fanout** - three fixed searches (sale history, permits, neighborhood trends) run concurrently
2. **Context Assembly** - results are numbered and truncated into one citation context
3. **Prompt Synthesis** - a JSON-mode completion turns the context into a dossier
4. **Finalization** - the first five real sources are attached as `raw_sources`

A failing search contributes no results; any later failure returns a 500 error envelope.
        """,
        version=__version__,
    )

    application.add_exception_handler(DossierPipelineError, _handle_pipeline_error)  # type: ignore[arg-type]
    application.add_exception_handler(RequestValidationError, _handle_request_validation_error)  # type: ignore[arg-type]
    application.add_exception_handler(Exception, _handle_unexpected_error)

    @application.middleware("http")
    async def add_cors_headers(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response

    @application.options("/analyze-property", include_in_schema=False)
    async def analyze_property_preflight() -> Response:
        return Response(status_code=status.HTTP_200_OK, headers=CORS_HEADERS)

    @application.post(
        "/analyze-property",
        status_code=status.HTTP_200_OK,
        summary="Generate Property Dossier",
        description="""
Runs the dossier pipeline for one address and returns the model's dossier with
up to five collected sources attached.

The model output is forwarded as produced unless strict schema checking is
enabled (`DOSSIER_STRICT_SCHEMA`), so the `Dossier` schema documents the
expected shape rather than a guarantee.
        """,
        tags=["Dossier"],
        responses={
            200: {"description": "Dossier generated", "model": Dossier},
            403: {"description": "Demo mode not available in this environment"},
            500: {
                "description": "Missing address or credentials, upstream failure, or unparseable model output",
                "model": ErrorResponse,
                "content": {
                    "application/json": {
                        "examples": {
                            "missing_address": {
                                "summary": "Missing address",
                                "value": {"error": "Address is required"},
                            },
                            "missing_credentials": {
                                "summary": "Missing credentials",
                                "value": {"error": "VALYU_API_KEY not configured"},
                            },
                            "completion_error": {
                                "summary": "Completion endpoint failure",
                                "value": {"error": "AI Gateway error: 429", "details": "rate limited"},
                            },
                        }
                    }
                },
            },
        },
    )
    async def analyze_property(
        body: AnalyzePropertyRequest,
        demo: bool = Query(default=False, description="Return a fixed sample dossier for frontend testing"),
        aggregator: DossierAggregator = Depends(get_aggregator),
    ) -> dict[str, Any]:
        if demo:
            if not is_demo_mode_allowed():
                raise HTTPException(
                    status_code=403,
                    detail="Demo mode not available in this environment",
                )
            if not body.address or not body.address.strip():
                raise AddressValidationError()
            log.warning("demo_mode_active", address=body.address)
            return get_demo_response(body.address)

        log.info("request.analyze_property", address=body.address)
        dossier = await aggregator.run(body.address)
        clear_context_fields()
        return dossier

    @application.get(
        "/geocode",
        response_model=list[GeocodeCandidate],
        summary="Address Lookup",
        description="""
Candidate addresses in Great Britain for a free-text query. Queries shorter than
three characters return an empty list; at most five candidates are returned.
        """,
        tags=["Geocoding"],
    )
    async def geocode(
        q: str = Query(description="Free-text address fragment", examples=["10 Downing"]),
        limit: int = Query(default=MAX_CANDIDATES, description="Maximum candidates (capped at 5)"),
        geocoder: GeocodingClient = Depends(get_geocoder),
    ) -> list[GeocodeCandidate]:
        return await geocoder.search(q, limit=limit)

    @application.get(
        "/geocode/locate",
        response_model=GeocodeCandidate,
        summary="Map Centre",
        description="Best single match for a chosen address, used to centre the map.",
        tags=["Geocoding"],
        responses={404: {"description": "No match for the address"}},
    )
    async def locate(
        address: str = Query(description="Full address as chosen by the user", examples=["10 Downing Street, London"]),
        geocoder: GeocodingClient = Depends(get_geocoder),
    ) -> GeocodeCandidate:
        candidate = await geocoder.locate(address)
        if candidate is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Address not found")
        return candidate

    @application.get("/health", response_model=HealthResponse, tags=["Health"], summary="Health Check")
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", version=__version__)

    @application.get("/health/liveness", response_model=HealthResponse, tags=["Health"], summary="Liveness Probe")
    async def liveness() -> HealthResponse:
        return HealthResponse(status="alive")

    @application.get("/health/readiness", response_model=HealthResponse, tags=["Health"], summary="Readiness Probe")
    async def readiness() -> HealthResponse:
        return HealthResponse(status="ready")

    return application


configure_structlog()
app = get_app()
