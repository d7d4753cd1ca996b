# =============================================================================
# Ingest Relay - Services Package
# =============================================================================
"""Service layer for normalization and the Supabase insert."""

from .relay import EventRelay, get_relay
from .supabase import SupabaseClient, SupabaseInsertError, SupabaseTransportError

__all__ = [
    "EventRelay",
    "get_relay",
    "SupabaseClient",
    "SupabaseInsertError",
    "SupabaseTransportError",
]
