"""API Routes Package."""

from api.routes import health, producers

__all__ = [
    "health",
    "producers",
]
