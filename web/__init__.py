"""Flask JSON API around the Hukum Chess engine."""

from .app import create_app

__all__ = ["create_app"]
