"""Ordering domain API package."""

from ordering.api.application import build_app
from ordering.api.routes import admin_router, order_router

__all__ = ["build_app", "order_router", "admin_router"]
