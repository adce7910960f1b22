from unittest.mock import MagicMock

import pytest
from sqlalchemy.orm import Session

from bandhu_queue.models import PRIORITY_HIGH, PRIORITY_NORMAL, MessageType, QueueMessage
from bandhu_queue.schemas.payloads import (
    DeliveryAssignPayload,
    NotificationCreatePayload,
    OrderStatusUpdatePayload,
    PaymentStatusUpdatePayload,
)
from bandhu_queue.services.notification_producer import PRODUCER_NAME, NotificationProducer
from bandhu_queue.services.queue_service import EnqueueResult, QueueService


@pytest.fixture
def producer(queue_service: QueueService) -> NotificationProducer:
    return NotificationProducer(queue_service)


def _order_update(status: str = "shipped") -> OrderStatusUpdatePayload:
    return OrderStatusUpdatePayload.model_validate(
        {
            "orderId": "order-1",
            "status": status,
            "previousStatus": "confirmed",
            "retailerId": "retailer-1",
            "wholesalerId": "wholesaler-1",
            "orderDetails": {"orderNumber": "RB-1001", "totalAmount": 999},
        }
    )


def test_create_notification_enqueues_camel_case_document(
    producer: NotificationProducer, db_session: Session, mocker
) -> None:
    mocker.patch("bandhu_queue.services.notification_producer.time.time", return_value=1700000000.5)
    payload = NotificationCreatePayload(
        user_id="retailer-1",
        title="Welcome",
        message="Your store is live.",
        entity_type="store",
        entity_id="store-1",
    )

    result = producer.create_notification(payload)

    assert result.success is True
    message = db_session.get(QueueMessage, result.message_id)
    assert message.message_type == MessageType.NOTIFICATION_CREATE.value
    assert message.producer == PRODUCER_NAME
    assert message.recipient_id == "retailer-1"
    assert message.deduplication_id == "notification:retailer-1:store:store-1:1700000000500"
    assert message.payload == {
        "userId": "retailer-1",
        "title": "Welcome",
        "message": "Your store is live.",
        "type": "info",
        "entityType": "store",
        "entityId": "store-1",
    }


def test_delivery_assignment_deduplicates_per_partner(
    producer: NotificationProducer, db_session: Session
) -> None:
    payload = DeliveryAssignPayload.model_validate(
        {
            "orderId": "order-1",
            "deliveryPartnerId": "partner-1",
            "retailerId": "retailer-1",
            "wholesalerId": "wholesaler-1",
            "orderDetails": {
                "orderNumber": "RB-1001",
                "retailerInfo": {"businessName": "Sharma Kirana"},
                "wholesalerInfo": {"businessName": "Patel Traders"},
            },
        }
    )

    first = producer.create_delivery_assignment_notification(payload)
    second = producer.create_delivery_assignment_notification(payload)

    assert second.duplicate is True
    assert second.message_id == first.message_id
    message = db_session.get(QueueMessage, first.message_id)
    assert message.deduplication_id == "delivery:assign:order-1:partner-1"
    assert message.recipient_id == "partner-1"
    assert message.priority == PRIORITY_HIGH


def test_order_status_update_deduplicates_per_status(
    producer: NotificationProducer, db_session: Session
) -> None:
    shipped = producer.create_order_status_update_notification(_order_update("shipped"))
    delivered = producer.create_order_status_update_notification(_order_update("delivered"))

    assert shipped.message_id != delivered.message_id
    message = db_session.get(QueueMessage, delivered.message_id)
    assert message.deduplication_id == "order:status:order-1:delivered"
    assert message.payload["orderDetails"] == {"orderNumber": "RB-1001", "totalAmount": 999.0}


def test_payment_status_update(producer: NotificationProducer, db_session: Session) -> None:
    payload = PaymentStatusUpdatePayload(
        order_id="order-1",
        payment_id="pay-1",
        status="paid",
        previous_status="pending",
        amount=499.0,
        user_id="retailer-1",
        order_number="RB-1001",
    )

    result = producer.create_payment_status_update_notification(payload)

    message = db_session.get(QueueMessage, result.message_id)
    assert message.message_type == MessageType.PAYMENT_STATUS_UPDATE.value
    assert message.deduplication_id == "payment:status:pay-1:paid"
    assert message.priority == PRIORITY_NORMAL


def test_enqueue_failure_is_returned_and_logged(caplog) -> None:
    queue = MagicMock(spec=QueueService)
    queue.enqueue.return_value = EnqueueResult(success=False, error="database is locked")
    producer = NotificationProducer(queue)

    with caplog.at_level("ERROR", logger="bandhu_queue.services.notification_producer"):
        result = producer.create_order_status_update_notification(_order_update())

    assert result.success is False
    assert "database is locked" in caplog.text
