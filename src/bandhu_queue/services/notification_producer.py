"""Producer helpers that turn marketplace events into queue messages."""

from __future__ import annotations

import logging
import time

from bandhu_queue.models import PRIORITY_HIGH, PRIORITY_NORMAL, MessageType
from bandhu_queue.schemas.payloads import (
    DeliveryAssignPayload,
    NotificationCreatePayload,
    OrderStatusUpdatePayload,
    PaymentStatusUpdatePayload,
)
from bandhu_queue.services.queue_service import EnqueueResult, QueueService

logger = logging.getLogger(__name__)

PRODUCER_NAME = "notification-producer"


class NotificationProducer:
    """Enqueue notification messages with deduplication ids derived from their content."""

    def __init__(self, queue: QueueService) -> None:
        self.queue = queue

    def create_notification(self, payload: NotificationCreatePayload) -> EnqueueResult:
        """Queue a plain notification.

        The millisecond timestamp in the deduplication id means repeated
        notifications about the same entity are all delivered.
        """
        deduplication_id = (
            f"notification:{payload.user_id}:{payload.entity_type or ''}:"
            f"{payload.entity_id or ''}:{int(time.time() * 1000)}"
        )
        return self._enqueue(
            MessageType.NOTIFICATION_CREATE,
            payload.to_document(),
            recipient_id=payload.user_id,
            deduplication_id=deduplication_id,
        )

    def create_delivery_assignment_notification(
        self, payload: DeliveryAssignPayload
    ) -> EnqueueResult:
        """Queue the notifications for a delivery partner assignment."""
        return self._enqueue(
            MessageType.DELIVERY_ASSIGN,
            payload.to_document(),
            recipient_id=payload.delivery_partner_id,
            deduplication_id=f"delivery:assign:{payload.order_id}:{payload.delivery_partner_id}",
            priority=PRIORITY_HIGH,
        )

    def create_order_status_update_notification(
        self, payload: OrderStatusUpdatePayload
    ) -> EnqueueResult:
        return self._enqueue(
            MessageType.ORDER_STATUS_UPDATE,
            payload.to_document(),
            recipient_id=payload.retailer_id,
            deduplication_id=f"order:status:{payload.order_id}:{payload.status}",
        )

    def create_payment_status_update_notification(
        self, payload: PaymentStatusUpdatePayload
    ) -> EnqueueResult:
        return self._enqueue(
            MessageType.PAYMENT_STATUS_UPDATE,
            payload.to_document(),
            recipient_id=payload.user_id,
            deduplication_id=f"payment:status:{payload.payment_id}:{payload.status}",
        )

    def _enqueue(
        self,
        message_type: MessageType,
        document: dict,
        *,
        recipient_id: str,
        deduplication_id: str,
        priority: str = PRIORITY_NORMAL,
    ) -> EnqueueResult:
        result = self.queue.enqueue(
            message_type,
            document,
            recipient_id=recipient_id,
            deduplication_id=deduplication_id,
            priority=priority,
            producer=PRODUCER_NAME,
        )
        if not result.success:
            logger.error("Error creating %s notification: %s", message_type.value, result.error)
        return result
