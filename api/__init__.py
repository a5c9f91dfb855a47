"""API Package.

FastAPI server for the Producer Resolver.
"""

from api.server import create_app, app

__all__ = [
    "create_app",
    "app",
]
