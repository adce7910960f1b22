"""Business logic services for the queue."""

from .handlers import MESSAGE_HANDLERS, ErrorKind, HandlerResult
from .notification_producer import NotificationProducer
from .queue_service import (
    BatchResult,
    CleanupResult,
    EnqueueResult,
    InitResult,
    QueueError,
    QueueService,
)

__all__ = [
    "QueueService",
    "QueueError",
    "BatchResult",
    "CleanupResult",
    "EnqueueResult",
    "InitResult",
    "NotificationProducer",
    "MESSAGE_HANDLERS",
    "ErrorKind",
    "HandlerResult",
]
