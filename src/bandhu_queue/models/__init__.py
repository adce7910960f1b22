"""SQLAlchemy models for the queue service."""

from .notification import Notification
from .processed_message import ProcessedMessage
from .queue_message import (
    MESSAGE_PRIORITIES,
    MESSAGE_STATUSES,
    PRIORITY_HIGH,
    PRIORITY_LOW,
    PRIORITY_NORMAL,
    STATUS_FAILED,
    STATUS_PENDING,
    STATUS_PROCESSED,
    STATUS_PROCESSING,
    MessageType,
    QueueMessage,
)

__all__ = [
    "Notification",
    "ProcessedMessage",
    "QueueMessage", "MessageType",
    "MESSAGE_STATUSES",
    "MESSAGE_PRIORITIES", "PRIORITY_HIGH", "PRIORITY_NORMAL", "PRIORITY_LOW",
    "STATUS_PENDING", "STATUS_PROCESSING", "STATUS_PROCESSED", "STATUS_FAILED",
]
