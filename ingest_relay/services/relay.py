# =============================================================================
# Ingest Relay - Event Relay Service
# =============================================================================
"""
Normalize-and-forward logic for inbound event batches.

``EventRelay.handle`` never raises for expected failures; it returns either
a ``RelayResponse`` or a typed ``RelayError``.
"""

from datetime import datetime, timezone
from functools import lru_cache
from typing import Optional

import httpx
import structlog

from ..config import UpstreamConfig, get_settings
from ..models import ErrorKind, RelayError, RelayOutcome, RelayResponse
from ..models.schemas import normalize_event, parse_batch
from .supabase import SupabaseClient, SupabaseInsertError, SupabaseTransportError


# Configure structured logger
logger = structlog.get_logger(__name__)


class EventRelay:
    """
    Stateless relay from a raw request body to one Supabase insert.

    Attributes:
        config: Upstream destination, validated before construction
        client: Supabase client used for the insert
    """

    def __init__(
        self,
        config: UpstreamConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config
        self.client = SupabaseClient(config, transport=transport)

        logger.info(
            "event_relay_initialized",
            url=config.insert_url,
        )

    async def handle(self, body: bytes) -> RelayOutcome:
        """
        Parse, normalize and forward one request body.

        Steps:
        1. Parse the body as JSON; a non-array value is a batch of one
        2. Normalize each event independently
        3. Forward the whole batch in a single insert

        Args:
            body: Raw request body

        Returns:
            RelayOutcome: Success envelope or typed error
        """
        try:
            batch = parse_batch(body)
        except ValueError as e:
            logger.warning("invalid_json_body", error=str(e))
            return RelayError(kind=ErrorKind.MALFORMED_INPUT, message=str(e))

        now = datetime.now(timezone.utc)
        events = [normalize_event(raw, now=now) for raw in batch]

        logger.info("relay_batch_normalized", event_count=len(events))

        try:
            result = await self.client.insert_events(events)
        except SupabaseInsertError as e:
            return RelayError(
                kind=ErrorKind.UPSTREAM_REJECTED,
                message=str(e),
                upstream_status=e.status_code,
                upstream_body=e.body,
            )
        except SupabaseTransportError as e:
            return RelayError(kind=ErrorKind.UPSTREAM_UNREACHABLE, message=str(e))

        return RelayResponse(events_processed=len(batch), supabase_result=result)


@lru_cache
def get_relay() -> EventRelay:
    """
    Get cached relay instance.

    Raises:
        ConfigurationError: If the Supabase URL or key is not configured
    """
    settings = get_settings()
    return EventRelay(config=settings.upstream_config())
