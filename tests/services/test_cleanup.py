"""Tests for retention cleanup of the processed-message ledger."""

from datetime import timedelta

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from bandhu_queue.core.settings import settings
from bandhu_queue.db.time import utcnow
from bandhu_queue.models import (
    STATUS_FAILED,
    STATUS_PENDING,
    STATUS_PROCESSED,
    MessageType,
    ProcessedMessage,
    QueueMessage,
)
from bandhu_queue.services.queue_service import QueueService

CREATE = MessageType.NOTIFICATION_CREATE.value


@pytest.fixture
def processed_history(db_session: Session, make_message) -> dict[int, QueueMessage]:
    """Processed messages whose ledger records are 1, 6, 8 and 10 days old."""
    messages = {}
    for days in (1, 6, 8, 10):
        processed_at = utcnow() - timedelta(days=days)
        message = make_message(status=STATUS_PROCESSED, processed_at=processed_at)
        db_session.add(
            ProcessedMessage(
                message_id=message.id,
                deduplication_id=f"history:{days}",
                message_type=CREATE,
                processed_at=processed_at,
            )
        )
        messages[days] = message
    db_session.flush()
    return messages


def test_cleanup_deletes_records_older_than_retention(
    queue_service: QueueService, db_session: Session, processed_history
) -> None:
    result = queue_service.cleanup_processed_messages(older_than=7)

    assert result.success is True
    assert result.deleted_count == 2
    remaining = set(db_session.scalars(select(ProcessedMessage.deduplication_id)))
    assert remaining == {"history:1", "history:6"}


def test_cleanup_removes_matching_processed_queue_rows(
    queue_service: QueueService, db_session: Session, processed_history
) -> None:
    queue_service.cleanup_processed_messages(older_than=7)

    remaining_ids = set(db_session.scalars(select(QueueMessage.id)))
    assert remaining_ids == {processed_history[1].id, processed_history[6].id}


def test_cleanup_leaves_pending_and_failed_messages(
    queue_service: QueueService, db_session: Session, make_message
) -> None:
    long_ago = utcnow() - timedelta(days=30)
    pending = make_message(age_seconds=30 * 86400)
    failed = make_message(status=STATUS_FAILED, processed_at=long_ago, age_seconds=30 * 86400)

    result = queue_service.cleanup_processed_messages(older_than=7)

    assert result.success is True
    assert result.deleted_count == 0
    db_session.refresh(pending)
    db_session.refresh(failed)
    assert pending.status == STATUS_PENDING
    assert failed.status == STATUS_FAILED


def test_cleanup_uses_configured_retention_by_default(
    queue_service: QueueService, db_session: Session, processed_history, monkeypatch
) -> None:
    monkeypatch.setattr(settings, "queue_retention_days", 5)

    result = queue_service.cleanup_processed_messages()

    assert result.deleted_count == 3


def test_delivery_is_not_repeated_inside_retention_window(
    queue_service: QueueService, processed_history, notification_payload
) -> None:
    result = queue_service.enqueue(CREATE, notification_payload(), deduplication_id="history:6")

    assert result.duplicate is True
    assert result.message_id == processed_history[6].id


def test_cleanup_reports_storage_errors(
    queue_service: QueueService, processed_history, mocker
) -> None:
    mocker.patch.object(
        queue_service.db,
        "scalars",
        side_effect=OperationalError("SELECT", {}, Exception("disk I/O error")),
    )

    result = queue_service.cleanup_processed_messages(older_than=7)

    assert result.success is False
    assert result.deleted_count == 0
    assert "disk I/O error" in result.error
