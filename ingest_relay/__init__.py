# =============================================================================
# Ingest Relay - Package Initialization
# =============================================================================
"""
Ingest Relay Service

A stateless relay that normalizes incoming analytics events and forwards
each batch to a Supabase REST table in a single insert.
"""

__version__ = "1.0.0"
