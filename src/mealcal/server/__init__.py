"""ASGI application factory and dependencies for the Mealcal server."""

from mealcal.server.app import app, create_app

__all__ = ["app", "create_app"]
