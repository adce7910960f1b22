"""HTTP API for the queue service."""

from .endpoints import admin_router, cron_router, queue_router

__all__ = [
    "admin_router",
    "cron_router",
    "queue_router",
]
