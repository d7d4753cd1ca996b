"""HTTP routes for the Ingest Relay."""

from .routes import router

__all__ = ["router"]
