"""SQLAlchemy model for outbound messages awaiting delivery."""

from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import JSON, VARCHAR, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from bandhu_queue.db.session import Base
from bandhu_queue.db.time import utcnow

STATUS_PENDING = "pending"
STATUS_PROCESSING = "processing"
STATUS_PROCESSED = "processed"
STATUS_FAILED = "failed"

MESSAGE_STATUSES = (STATUS_PENDING, STATUS_PROCESSING, STATUS_PROCESSED, STATUS_FAILED)

# Stored for producers and operators; claim order is oldest-first regardless.
PRIORITY_HIGH = "high"
PRIORITY_NORMAL = "normal"
PRIORITY_LOW = "low"

MESSAGE_PRIORITIES = (PRIORITY_HIGH, PRIORITY_NORMAL, PRIORITY_LOW)


class MessageType(str, Enum):
    """Categories of queued messages; each maps to one handler."""

    NOTIFICATION_CREATE = "notification:create"
    NOTIFICATION_UPDATE = "notification:update"
    NOTIFICATION_DELETE = "notification:delete"
    DELIVERY_ASSIGN = "delivery:assign"
    ORDER_STATUS_UPDATE = "order:status_update"
    PAYMENT_STATUS_UPDATE = "payment:status_update"


class QueueMessage(Base):
    """A message in the outbound queue."""

    __tablename__ = "message_queue"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    message_type: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    recipient_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    deduplication_id: Mapped[str | None] = mapped_column(Text, unique=True, nullable=True)
    producer: Mapped[str] = mapped_column(Text, nullable=False, default="system")
    priority: Mapped[str] = mapped_column(VARCHAR(10), nullable=False, default=PRIORITY_NORMAL)
    status: Mapped[str] = mapped_column(
        VARCHAR(20), nullable=False, default=STATUS_PENDING, index=True
    )
    retry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_retries: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Claim ownership; a claim past locked_until may be released back to pending.
    locked_by: Mapped[str | None] = mapped_column(Text, nullable=True)
    locked_until: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )
    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
