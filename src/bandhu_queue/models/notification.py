"""User-facing notifications written by the queue handlers."""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, VARCHAR, Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from bandhu_queue.db.session import Base
from bandhu_queue.db.time import utcnow

NOTIFICATION_KINDS = ("success", "info", "warning", "error")


class Notification(Base):
    """A notification shown to a retailer, wholesaler or delivery partner."""

    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    kind: Mapped[str] = mapped_column("type", VARCHAR(20), nullable=False, default="info")
    related_entity_type: Mapped[str | None] = mapped_column(Text, nullable=True)
    related_entity_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    action_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    data: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
