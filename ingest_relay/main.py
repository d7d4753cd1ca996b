# =============================================================================
# Ingest Relay - Main Application
# =============================================================================
"""
Ingest Relay

A stateless ingestion relay that accepts analytics events over HTTP,
fills in missing fields, and stores each batch in a Supabase table
with a single REST insert.

Key Features:
- Flexible input: a single event object or an array of events
- Total normalization: every event gets all six stored fields
- CORS-ready: answers browser pre-flight requests on any path
- Observable: Structured logging for debugging and monitoring
"""

import logging

import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.exception_handlers import http_exception_handler
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api import router
from .api.routes import method_not_allowed
from .config import ConfigurationError, get_settings
from .services import get_relay


# =============================================================================
# Logging Configuration
# =============================================================================

def configure_logging() -> None:
    """
    Configure structured logging with structlog.

    Sets up JSON-formatted logs on top of the stdlib logging module,
    at the level given by LOG_LEVEL.
    """
    settings = get_settings()

    logging.basicConfig(
        format="%(message)s",
        level=settings.log_level.upper(),
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# =============================================================================
# Error Handlers
# =============================================================================

async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> Response:
    """
    Answer routing-level 405s the same way the relay route does.

    Methods outside the relay route's list never reach it, so the router
    raises instead. Every other status keeps FastAPI's default handling.
    """
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        return method_not_allowed()
    return await http_exception_handler(request, exc)


# =============================================================================
# Application Factory
# =============================================================================

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured application instance
    """
    settings = get_settings()

    configure_logging()

    app = FastAPI(
        title="Ingest Relay",
        description="""
## Overview

Relays analytics events to a Supabase table.

## Usage

POST a JSON event object, or an array of them, to any path. Missing
fields are defaulted and the batch is inserted in one request.
        """,
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # CORS headers are set per response in the relay route
    app.include_router(router)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)

    logger = structlog.get_logger(__name__)
    logger.info(
        "application_startup",
        service=settings.service_name,
        environment=settings.environment,
        table=settings.supabase_table,
    )

    return app


# =============================================================================
# Application Instance
# =============================================================================

app = create_app()


# =============================================================================
# Startup & Shutdown Events
# =============================================================================

@app.on_event("startup")
async def startup_event() -> None:
    """
    Application startup handler.

    Validates the upstream configuration so a missing URL or key shows
    up in the logs before the first request arrives.
    """
    logger = structlog.get_logger(__name__)
    try:
        relay = get_relay()
    except ConfigurationError as e:
        logger.error("upstream_configuration_invalid", error=str(e))
        return
    logger.info("startup_complete", url=relay.config.insert_url)


@app.on_event("shutdown")
async def shutdown_event() -> None:
    """Log when application is shutting down."""
    logger = structlog.get_logger(__name__)
    logger.info("shutdown_initiated", message="Ingest Relay shutting down")
