# =============================================================================
# Ingest Relay - Models Package
# =============================================================================
"""Pydantic models for events, envelopes, and relay outcomes."""

from .schemas import (
    ErrorKind,
    ErrorResponse,
    HealthResponse,
    NormalizedEvent,
    RelayError,
    RelayOutcome,
    RelayResponse,
    UpstreamResult,
)

__all__ = [
    "ErrorKind",
    "ErrorResponse",
    "HealthResponse",
    "NormalizedEvent",
    "RelayError",
    "RelayOutcome",
    "RelayResponse",
    "UpstreamResult",
]
