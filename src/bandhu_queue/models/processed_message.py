"""Deduplication ledger of successfully delivered messages."""

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from bandhu_queue.db.session import Base
from bandhu_queue.db.time import utcnow


class ProcessedMessage(Base):
    """Record that a queue message has been delivered exactly once."""

    __tablename__ = "processed_messages"

    message_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    deduplication_id: Mapped[str | None] = mapped_column(Text, nullable=True, index=True)
    message_type: Mapped[str] = mapped_column(Text, nullable=False)
    processed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )
