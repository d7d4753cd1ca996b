# =============================================================================
# Ingest Relay - Pydantic Schemas
# =============================================================================
"""
Event, envelope, and result models for the Ingest Relay.

Incoming events are loose JSON objects; they become ``NormalizedEvent``
records before being forwarded. Relay outcomes are explicit result types
so that the route alone decides HTTP status codes.
"""

import json
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, Field


SUCCESS_MESSAGE = "Data stored in Supabase successfully! 🎉"
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class ErrorKind(str, Enum):
    """Enumeration of relay failure categories."""
    MALFORMED_INPUT = "malformed_input"
    UPSTREAM_REJECTED = "upstream_rejected"
    UPSTREAM_UNREACHABLE = "upstream_unreachable"
    CONFIGURATION = "configuration"
    INTERNAL = "internal"


class NormalizedEvent(BaseModel):
    """
    Event record in the shape stored upstream.

    Attributes:
        event_timestamp: Client timestamp, or relay time when absent
        event_type: Event name, "unknown" when absent
        user_id: User identifier, "anonymous" when absent
        session_id: Session identifier, generated when absent
        page_url: Page the event came from, empty when absent
        event_data: Free-form event properties
    """

    event_timestamp: str = Field(..., description="ISO-8601 event time")
    event_type: str = Field(..., description="Event name")
    user_id: str = Field(..., description="User identifier")
    session_id: str = Field(..., description="Session identifier")
    page_url: str = Field(..., description="Originating page URL")
    event_data: Dict[str, Any] = Field(
        default_factory=dict,
        description="Event properties",
    )


class UpstreamResult(BaseModel):
    """Descriptor of a successful upstream insert."""

    success: bool = Field(default=True, description="Insert succeeded")
    status: int = Field(..., description="Upstream HTTP status code")


class RelayResponse(BaseModel):
    """
    Response envelope for a forwarded batch.

    Attributes:
        status: Always "success"
        message: Human-readable status message
        events_processed: Number of events in the inbound batch
        supabase_result: Result of the upstream insert
    """

    status: Literal["success"] = "success"
    message: str = Field(default=SUCCESS_MESSAGE)
    events_processed: int = Field(..., ge=0)
    supabase_result: UpstreamResult


class ErrorResponse(BaseModel):
    """Response envelope for any failed POST."""

    status: Literal["error"] = "error"
    error: str


class RelayError(BaseModel):
    """
    Typed failure of a relay attempt.

    Attributes:
        kind: Failure category
        message: Message reported to the caller
        upstream_status: Upstream HTTP status, when the upstream answered
        upstream_body: Upstream response text, when the upstream answered
    """

    kind: ErrorKind
    message: str
    upstream_status: Optional[int] = None
    upstream_body: Optional[str] = None

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(error=self.message)


RelayOutcome = Union[RelayResponse, RelayError]


class HealthResponse(BaseModel):
    """
    Response model for health check endpoint.

    Attributes:
        status: Service health status
        service: Service name
        version: Service version
        timestamp: Current server time
    """

    status: str = Field(default="healthy", description="Health status")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Current timestamp",
    )


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Invalid JSON constant: {name}")


def parse_batch(body: bytes) -> List[Any]:
    """
    Parse a request body into an ordered batch.

    A top-level array is the batch; any other JSON value is a batch of one.

    Raises:
        ValueError: If the body is not valid JSON
    """
    data = json.loads(body, parse_constant=_reject_constant)
    if isinstance(data, list):
        return data
    return [data]


def format_timestamp(moment: datetime) -> str:
    """Format as ISO-8601 UTC with millisecond precision and a Z suffix."""
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def generate_session_id(moment: datetime) -> str:
    """
    Generate a session identifier from a point in time.

    Format: session_{epoch_millis}
    """
    millis = (moment.astimezone(timezone.utc) - EPOCH) // timedelta(milliseconds=1)
    return f"session_{millis}"


def _text_or(value: Any, default: str) -> str:
    # Falsy values (None, "", 0, False) count as absent.
    if not value:
        return default
    return value if isinstance(value, str) else json.dumps(value)


def normalize_event(raw: Any, now: Optional[datetime] = None) -> NormalizedEvent:
    """
    Fill in defaults for a single raw event.

    Only the event's own fields are consulted. Anything that is not a JSON
    object is treated as an event with no fields.

    Args:
        raw: Decoded JSON value for one batch element
        now: Processing time, defaults to the current UTC time

    Returns:
        NormalizedEvent: Event with every field populated
    """
    fields: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}
    moment = now or datetime.now(timezone.utc)

    properties = fields.get("properties")

    return NormalizedEvent(
        event_timestamp=_text_or(fields.get("timestamp"), format_timestamp(moment)),
        event_type=_text_or(fields.get("event_type"), "unknown"),
        user_id=_text_or(fields.get("user_id"), "anonymous"),
        session_id=_text_or(fields.get("session_id"), generate_session_id(moment)),
        page_url=_text_or(fields.get("page_url"), ""),
        event_data=dict(properties) if isinstance(properties, Mapping) else {},
    )
