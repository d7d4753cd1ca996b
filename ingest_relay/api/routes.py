"""
Ingest Relay - Route Handlers

Every path accepts POST for event ingestion and OPTIONS for CORS pre-flight.
Other methods are rejected with 405, except GET /health.
"""

import structlog
from fastapi import APIRouter, Request, Response, status
from fastapi.responses import JSONResponse, PlainTextResponse

from ..config import ConfigurationError, get_settings
from ..models import ErrorKind, HealthResponse, RelayError, RelayOutcome
from ..services import get_relay


logger = structlog.get_logger(__name__)
router = APIRouter()

ALLOW_ORIGIN = {"Access-Control-Allow-Origin": "*"}
PREFLIGHT_HEADERS = {
    **ALLOW_ORIGIN,
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}
ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def method_not_allowed() -> PlainTextResponse:
    """Plain-text 405 shared by the relay route and the app-level handler."""
    return PlainTextResponse(
        "Method not allowed",
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        headers=ALLOW_ORIGIN,
    )


@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """Health check for load balancers."""
    settings = get_settings()
    return HealthResponse(service=settings.service_name, version="1.0.0")


@router.api_route("/{path:path}", methods=ALL_METHODS, tags=["Ingestion"])
async def relay_events(request: Request, path: str) -> Response:
    """
    Normalize posted events and forward them to Supabase.

    Body: a single event object or an array of event objects.
    """
    if request.method == "OPTIONS":
        return Response(status_code=status.HTTP_200_OK, headers=PREFLIGHT_HEADERS)

    if request.method != "POST":
        return method_not_allowed()

    body = await request.body()
    logger.info("relay_request_received", path=f"/{path}", body_bytes=len(body))

    outcome = await _relay_body(body)

    if isinstance(outcome, RelayError):
        logger.error(
            "relay_failed",
            kind=outcome.kind.value,
            error=outcome.message,
            upstream_status=outcome.upstream_status,
        )
        return JSONResponse(
            content=outcome.to_response().model_dump(),
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            headers=ALLOW_ORIGIN,
        )

    logger.info("relay_successful", events_processed=outcome.events_processed)
    return JSONResponse(
        content=outcome.model_dump(),
        status_code=status.HTTP_200_OK,
        headers=ALLOW_ORIGIN,
    )


async def _relay_body(body: bytes) -> RelayOutcome:
    """Run the relay, turning any leftover exception into a RelayError."""
    try:
        relay = get_relay()
    except ConfigurationError as e:
        return RelayError(kind=ErrorKind.CONFIGURATION, message=str(e))

    try:
        return await relay.handle(body)
    except Exception as e:
        logger.exception("relay_unexpected_error", error_type=type(e).__name__)
        return RelayError(kind=ErrorKind.INTERNAL, message=str(e))
