"""Durable outbound message queue backed by the relational database.

This module provides the QueueService class used by the cron and on-demand
trigger endpoints. It includes:

- Enqueueing messages with producer-supplied deduplication ids
- Batch processing with exclusive, conditional claims
- Retry classification driven by handler results
- Retention cleanup of the deduplication ledger
- Idempotent creation of the queue tables
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import delete, func, inspect, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from bandhu_queue.core.settings import settings
from bandhu_queue.db.time import days_ago, lock_expiry, utcnow
from bandhu_queue.models import (
    MESSAGE_PRIORITIES,
    MESSAGE_STATUSES,
    PRIORITY_NORMAL,
    STATUS_FAILED,
    STATUS_PENDING,
    STATUS_PROCESSED,
    STATUS_PROCESSING,
    MessageType,
    Notification,
    ProcessedMessage,
    QueueMessage,
)
from bandhu_queue.services.handlers import (
    MESSAGE_HANDLERS,
    ErrorKind,
    HandlerResult,
    MessageHandler,
)

# Configure logger for this module
logger = logging.getLogger(__name__)

MAX_ERROR_LENGTH = 500

QUEUE_TABLES = (QueueMessage.__table__, ProcessedMessage.__table__, Notification.__table__)


class QueueError(RuntimeError):
    """Base exception raised for queue failures outside the request path."""


@dataclass(frozen=True)
class BatchResult:
    """Outcome of one `process_next_batch` invocation."""

    success: bool
    processed_count: int
    error: str | None = None


@dataclass(frozen=True)
class CleanupResult:
    """Outcome of one retention cleanup."""

    success: bool
    deleted_count: int
    error: str | None = None


@dataclass(frozen=True)
class InitResult:
    """Outcome of table initialization."""

    success: bool
    error: str | None = None
    created: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class EnqueueResult:
    """Outcome of enqueueing a message."""

    success: bool
    message_id: str | None = None
    duplicate: bool = False
    error: str | None = None


def _message_type_value(message_type: MessageType | str) -> str:
    return message_type.value if isinstance(message_type, MessageType) else str(message_type)


class QueueService:
    """Enqueue, claim, deliver and clean up outbound messages.

    A service instance wraps one database session. Claims are committed as
    soon as they are made so that concurrent invocations in other processes
    observe them; the only coordination between invocations is the
    conditional ``pending -> processing`` update.
    """

    def __init__(
        self,
        db: Session,
        handlers: Mapping[str, MessageHandler] | None = None,
    ) -> None:
        """Initialize the queue service.

        Args:
            db: Database session used for every operation.
            handlers: Optional handler table keyed by message type. Defaults to
                the built-in handlers.
        """
        self.db = db
        self.handlers: Mapping[str, MessageHandler] = (
            handlers if handlers is not None else MESSAGE_HANDLERS
        )

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def initialize(self) -> InitResult:
        """Create the queue tables if they do not exist yet."""
        try:
            bind = self.db.get_bind()
            existing = set(inspect(bind).get_table_names())
            missing = [table for table in QUEUE_TABLES if table.name not in existing]
            for table in missing:
                table.create(bind=bind, checkfirst=True)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Error initializing queue tables: %s", exc)
            return InitResult(success=False, error=str(exc))

        created = [table.name for table in missing]
        if created:
            logger.info("Created queue tables: %s", ", ".join(created))
        return InitResult(success=True, created=created)

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    def enqueue(
        self,
        message_type: MessageType | str,
        payload: Mapping[str, Any],
        *,
        recipient_id: str | None = None,
        deduplication_id: str | None = None,
        max_retries: int | None = None,
        priority: str = PRIORITY_NORMAL,
        producer: str = "system",
    ) -> EnqueueResult:
        """Add a pending message to the queue.

        Args:
            message_type: Category of the message; must have a registered handler.
            payload: JSON-serializable body passed to the handler.
            recipient_id: Reference to the user the message is ultimately for.
            deduplication_id: Producer key; a second message with the same key is
                skipped while the first is queued or recorded in the ledger.
            max_retries: Retryable failures tolerated before the message fails.
            priority: One of `high`, `normal` or `low`; recorded on the message.
            producer: Name of the enqueuing component.

        Returns:
            EnqueueResult with the new (or existing, for duplicates) message id.
        """
        type_value = _message_type_value(message_type)
        if type_value not in self.handlers:
            return EnqueueResult(success=False, error=f"Unknown message type: {type_value}")
        if priority not in MESSAGE_PRIORITIES:
            return EnqueueResult(success=False, error=f"Unknown priority: {priority}")

        try:
            if deduplication_id:
                existing_id = self._find_by_deduplication_id(deduplication_id)
                if existing_id is not None:
                    logger.debug("Skipping duplicate message %s", deduplication_id)
                    return EnqueueResult(success=True, message_id=existing_id, duplicate=True)

            message = QueueMessage(
                id=str(uuid.uuid4()),
                message_type=type_value,
                payload=dict(payload),
                recipient_id=recipient_id,
                deduplication_id=deduplication_id,
                producer=producer,
                priority=priority,
                status=STATUS_PENDING,
                retry_count=0,
                max_retries=settings.queue_max_retries if max_retries is None else max_retries,
                created_at=utcnow(),
            )
            try:
                with self.db.begin_nested():
                    self.db.add(message)
            except IntegrityError:
                # Lost a race with another producer using the same key.
                existing_id = self._find_by_deduplication_id(deduplication_id or "")
                self.db.commit()
                return EnqueueResult(success=True, message_id=existing_id, duplicate=True)

            message_id = message.id
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Error enqueueing %s message: %s", type_value, exc)
            return EnqueueResult(success=False, error=str(exc))

        logger.debug("Enqueued %s message %s", type_value, message_id)
        return EnqueueResult(success=True, message_id=message_id)

    def _find_by_deduplication_id(self, deduplication_id: str) -> str | None:
        recorded = self.db.scalar(
            select(ProcessedMessage.message_id)
            .where(ProcessedMessage.deduplication_id == deduplication_id)
            .limit(1)
        )
        if recorded is not None:
            return recorded
        return self.db.scalar(
            select(QueueMessage.id).where(QueueMessage.deduplication_id == deduplication_id)
        )

    # ------------------------------------------------------------------
    # Batch processing
    # ------------------------------------------------------------------

    def process_next_batch(
        self,
        batch_size: int | None = None,
        processor_id: str | None = None,
        message_types: Iterable[MessageType | str] | None = None,
        lock_duration: int | None = None,
    ) -> BatchResult:
        """Claim and deliver up to `batch_size` pending messages, oldest first.

        Args:
            batch_size: Upper bound on messages claimed. Zero or negative claims nothing.
            processor_id: Identifier recorded as the claim owner.
            message_types: Optional filter on message categories.
            lock_duration: Seconds a claim stays valid before it may be released.

        Returns:
            BatchResult whose `processed_count` counts messages that reached
            `processed` in this invocation.
        """
        if batch_size is None:
            batch_size = settings.queue_default_batch_size
        if batch_size <= 0:
            return BatchResult(success=True, processed_count=0)

        processor_id = processor_id or f"processor-{uuid.uuid4()}"
        if lock_duration is None:
            lock_duration = settings.queue_lock_duration_seconds
        type_values = (
            [_message_type_value(t) for t in message_types] if message_types else None
        )

        processed = 0
        try:
            self.release_expired_claims()
            candidates = self._select_candidates(batch_size, type_values)
            logger.debug("Found %d pending messages", len(candidates))

            for message_id in candidates:
                message = self._claim(message_id, processor_id, lock_duration)
                if message is None:
                    logger.debug("Message %s was claimed by another processor", message_id)
                    continue
                if self._process_claimed(message, processor_id):
                    processed += 1
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Error processing message batch: %s", exc)
            return BatchResult(success=False, processed_count=processed, error=str(exc))

        if processed:
            logger.info("Processor %s delivered %d message(s)", processor_id, processed)
        return BatchResult(success=True, processed_count=processed)

    def _select_candidates(self, batch_size: int, message_types: list[str] | None) -> list[str]:
        """Return ids of the oldest pending messages."""
        query = select(QueueMessage.id).where(QueueMessage.status == STATUS_PENDING)
        if message_types:
            query = query.where(QueueMessage.message_type.in_(message_types))
        query = query.order_by(QueueMessage.created_at, QueueMessage.id).limit(batch_size)
        return list(self.db.scalars(query))

    def _claim(self, message_id: str, processor_id: str, lock_duration: int) -> QueueMessage | None:
        """Atomically move one message from pending to processing.

        Returns the claimed message, or None if another invocation got there first.
        """
        result = self.db.execute(
            update(QueueMessage)
            .where(QueueMessage.id == message_id, QueueMessage.status == STATUS_PENDING)
            .values(
                status=STATUS_PROCESSING,
                locked_by=processor_id,
                locked_until=lock_expiry(lock_duration),
            )
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        if result.rowcount != 1:
            return None

        message = self.db.get(QueueMessage, message_id)
        if message is not None:
            self.db.refresh(message)
        return message

    def _process_claimed(self, message: QueueMessage, processor_id: str) -> bool:
        """Deliver a claimed message and record the outcome.

        Every completion is conditional on this processor still holding the
        claim. If the claim expired and was released or taken over while the
        handler ran, the handler's writes are rolled back and nothing is recorded.

        Returns True if the message reached `processed` in this call.
        """
        message_id = message.id
        if self._already_processed(message_id):
            logger.info("Message %s is already in the ledger; skipping delivery", message_id)
            if not self._complete(
                message_id,
                processor_id,
                STATUS_PROCESSED,
                processed_at=func.coalesce(QueueMessage.processed_at, utcnow()),
            ):
                self._log_lost_claim(message_id, processor_id)
            self.db.commit()
            return False

        deduplication_id = message.deduplication_id
        message_type = message.message_type
        savepoint = self.db.begin_nested()
        outcome = self._dispatch(message)

        if outcome.succeeded:
            now = utcnow()
            if not self._complete(message_id, processor_id, STATUS_PROCESSED, processed_at=now):
                savepoint.rollback()
                self.db.commit()
                self._log_lost_claim(message_id, processor_id)
                return False
            savepoint.commit()
            self.db.add(
                ProcessedMessage(
                    message_id=message_id,
                    deduplication_id=deduplication_id,
                    message_type=message_type,
                    processed_at=now,
                )
            )
            self.db.commit()
            return True

        savepoint.rollback()
        self._record_failure(message, processor_id, outcome)
        self.db.commit()
        return False

    def _already_processed(self, message_id: str) -> bool:
        return self.db.get(ProcessedMessage, message_id) is not None

    def _dispatch(self, message: QueueMessage) -> HandlerResult:
        """Run the handler registered for the message type."""
        handler = self.handlers.get(message.message_type)
        if handler is None:
            return HandlerResult.non_retryable(f"Unknown message type: {message.message_type}")

        try:
            return handler(self.db, message.payload)
        except SQLAlchemyError as e:
            logger.warning("Storage error delivering message %s: %s", message.id, e)
            return HandlerResult.retryable(f"Error processing message: {e}")
        except (KeyError, TypeError, ValueError) as e:
            logger.error("Data error delivering message %s: %s", message.id, e, exc_info=True)
            return HandlerResult.non_retryable(f"Error processing message: {e}")
        except Exception as e:
            # One message must never abort the batch.
            logger.error("Unexpected error delivering message %s: %s", message.id, e, exc_info=True)
            return HandlerResult.retryable(f"Error processing message: {e}")

    def _record_failure(
        self, message: QueueMessage, processor_id: str, outcome: HandlerResult
    ) -> None:
        error = (outcome.error or "unknown error")[:MAX_ERROR_LENGTH]
        retry_count = message.retry_count
        max_retries = message.max_retries

        if outcome.error_kind is ErrorKind.RETRYABLE:
            retry_count += 1
            if retry_count <= max_retries:
                if self._complete(
                    message.id,
                    processor_id,
                    STATUS_PENDING,
                    retry_count=retry_count,
                    error=error,
                ):
                    logger.warning(
                        "Message %s failed (attempt %d/%d), will retry: %s",
                        message.id,
                        retry_count,
                        max_retries,
                        error,
                    )
                else:
                    self._log_lost_claim(message.id, processor_id)
                return

        if not self._complete(
            message.id,
            processor_id,
            STATUS_FAILED,
            retry_count=retry_count,
            error=error,
            processed_at=utcnow(),
        ):
            self._log_lost_claim(message.id, processor_id)
        elif outcome.error_kind is ErrorKind.RETRYABLE:
            logger.error("Message %s exhausted its retries: %s", message.id, error)
        else:
            logger.error("Message %s failed permanently: %s", message.id, error)

    def _complete(self, message_id: str, processor_id: str, status: str, **values: Any) -> bool:
        """Move a message out of `processing`, only while `processor_id` holds the claim.

        Returns False if the claim was released or taken over in the meantime.
        """
        result = self.db.execute(
            update(QueueMessage)
            .where(
                QueueMessage.id == message_id,
                QueueMessage.status == STATUS_PROCESSING,
                QueueMessage.locked_by == processor_id,
            )
            .values(status=status, locked_by=None, locked_until=None, **values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    def _log_lost_claim(message_id: str, processor_id: str) -> None:
        logger.warning(
            "Processor %s lost its claim on message %s; outcome discarded",
            processor_id,
            message_id,
        )

    def release_expired_claims(self) -> int:
        """Return messages whose claim has expired to the pending state."""
        result = self.db.execute(
            update(QueueMessage)
            .where(
                QueueMessage.status == STATUS_PROCESSING,
                or_(QueueMessage.locked_until.is_(None), QueueMessage.locked_until < utcnow()),
            )
            .values(status=STATUS_PENDING, locked_by=None, locked_until=None)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        released = result.rowcount or 0
        if released:
            logger.warning("Released %d expired claim(s)", released)
        return released

    # ------------------------------------------------------------------
    # Retention
    # ------------------------------------------------------------------

    def cleanup_processed_messages(self, older_than: int | None = None) -> CleanupResult:
        """Delete ledger records processed more than `older_than` days ago.

        The matching `processed` queue rows go with them. Pending, processing
        and failed messages are never touched.
        """
        if older_than is None:
            older_than = settings.queue_retention_days
        cutoff = days_ago(older_than)

        try:
            expired_ids = list(
                self.db.scalars(
                    select(ProcessedMessage.message_id).where(
                        ProcessedMessage.processed_at < cutoff
                    )
                )
            )
            if not expired_ids:
                return CleanupResult(success=True, deleted_count=0)

            deleted = self.db.execute(
                delete(ProcessedMessage)
                .where(ProcessedMessage.message_id.in_(expired_ids))
                .execution_options(synchronize_session=False)
            ).rowcount
            self.db.execute(
                delete(QueueMessage)
                .where(
                    QueueMessage.id.in_(expired_ids),
                    QueueMessage.status == STATUS_PROCESSED,
                )
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Error cleaning up processed messages: %s", exc)
            return CleanupResult(success=False, deleted_count=0, error=str(exc))

        logger.info("Cleaned up %d processed message(s) older than %d days", deleted, older_than)
        return CleanupResult(success=True, deleted_count=deleted)

    # ------------------------------------------------------------------
    # Monitoring
    # ------------------------------------------------------------------

    def get_stats(self) -> dict[str, int]:
        """Return message counts per status plus the ledger size."""
        counts = {status: 0 for status in MESSAGE_STATUSES}
        rows = self.db.execute(
            select(QueueMessage.status, func.count()).group_by(QueueMessage.status)
        ).all()
        for status, count in rows:
            counts[status] = int(count)
        counts["ledger"] = int(self.db.scalar(select(func.count()).select_from(ProcessedMessage)) or 0)
        return counts
