"""FastAPI application exposing the player save endpoints."""

from .app import create_app
from .settings import SaveApiSettings

__all__ = ["create_app", "SaveApiSettings"]
