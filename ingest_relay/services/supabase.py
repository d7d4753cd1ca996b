# =============================================================================
# Ingest Relay - Supabase Insert Service
# =============================================================================
"""
Supabase REST client for inserting normalized events.

Performs exactly one POST per batch against the PostgREST table endpoint.
There are no retries: failures are logged and raised to the caller.
"""

from typing import List, Optional

import httpx
import structlog

from ..config import UpstreamConfig
from ..models import NormalizedEvent, UpstreamResult


# Configure structured logger
logger = structlog.get_logger(__name__)


class SupabaseInsertError(Exception):
    """Raised when Supabase answers an insert with a non-2xx status."""

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"Supabase insert failed: {status_code} - {body}")


class SupabaseTransportError(Exception):
    """Raised when the insert request could not be completed."""
    pass


class SupabaseClient:
    """
    Thin async wrapper around the Supabase table insert endpoint.

    A fresh ``httpx.AsyncClient`` is opened for every insert, so no
    connection state is shared between requests.

    Attributes:
        config: Destination URL, table and API key
        _transport: Optional httpx transport override
    """

    def __init__(
        self,
        config: UpstreamConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config
        self._transport = transport

    def _headers(self) -> dict:
        key = self.config.api_key.get_secret_value()
        return {
            "Authorization": f"Bearer {key}",
            "apikey": key,
            "Content-Type": "application/json",
            "Prefer": "return=minimal",
        }

    async def insert_events(self, events: List[NormalizedEvent]) -> UpstreamResult:
        """
        Insert a batch of normalized events in a single request.

        Args:
            events: Normalized events, in inbound order

        Returns:
            UpstreamResult: Success flag and upstream status code

        Raises:
            SupabaseInsertError: If Supabase returns a non-2xx status
            SupabaseTransportError: If the request fails before a response
        """
        payload = [event.model_dump(mode="json") for event in events]

        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.post(
                    self.config.insert_url,
                    headers=self._headers(),
                    json=payload,
                )
        except httpx.HTTPError as e:
            logger.error(
                "upstream_request_failed",
                url=self.config.insert_url,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise SupabaseTransportError(
                f"Supabase request failed: {e}"
            ) from e

        if not response.is_success:
            logger.error(
                "upstream_insert_failed",
                url=self.config.insert_url,
                status_code=response.status_code,
                body=response.text,
            )
            raise SupabaseInsertError(response.status_code, response.text)

        logger.info(
            "upstream_insert_succeeded",
            table=self.config.table,
            status_code=response.status_code,
            event_count=len(events),
        )

        return UpstreamResult(success=True, status=response.status_code)
