"""API endpoint modules."""

from .admin import router as admin_router
from .cron import router as cron_router
from .queue import router as queue_router

__all__ = [
    "admin_router",
    "cron_router",
    "queue_router",
]
