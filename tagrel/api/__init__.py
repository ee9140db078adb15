"""API layer - FastAPI endpoints."""

from .relations import router as relations_router

__all__ = [
    "relations_router",
]
