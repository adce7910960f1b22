"""Message handlers keyed by message type.

Each handler receives the session and the raw payload of one queue message
and returns a :class:`HandlerResult`. The batch processor never inspects
exception types coming out of a handler's normal path; it branches on
``HandlerResult.error_kind`` instead.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import ValidationError
from sqlalchemy.orm import Session

from bandhu_queue.models import MessageType, Notification
from bandhu_queue.schemas.payloads import (
    DeliveryAssignPayload,
    NotificationCreatePayload,
    NotificationDeletePayload,
    NotificationUpdatePayload,
    OrderStatusUpdatePayload,
    PaymentStatusUpdatePayload,
)

logger = logging.getLogger(__name__)


class ErrorKind(Enum):
    """Outcome classification used by the batch loop."""

    NONE = "none"
    RETRYABLE = "retryable"
    NON_RETRYABLE = "non_retryable"


@dataclass(frozen=True)
class HandlerResult:
    """Result of handling one message."""

    error_kind: ErrorKind = ErrorKind.NONE
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error_kind is ErrorKind.NONE

    @classmethod
    def ok(cls) -> HandlerResult:
        return cls()

    @classmethod
    def retryable(cls, error: str) -> HandlerResult:
        return cls(ErrorKind.RETRYABLE, error)

    @classmethod
    def non_retryable(cls, error: str) -> HandlerResult:
        return cls(ErrorKind.NON_RETRYABLE, error)


MessageHandler = Callable[[Session, Mapping[str, Any]], HandlerResult]


def _invalid_payload(message_type: MessageType, exc: ValidationError) -> HandlerResult:
    logger.warning("Malformed %s payload: %s", message_type.value, exc)
    return HandlerResult.non_retryable(
        f"Invalid {message_type.value} payload: {exc.error_count()} validation error(s)"
    )


def create_notification(db: Session, payload: NotificationCreatePayload) -> Notification:
    """Insert a notification row; the caller owns the transaction."""
    notification = Notification(
        user_id=payload.user_id,
        title=payload.title,
        message=payload.message,
        kind=payload.type,
        related_entity_type=payload.entity_type,
        related_entity_id=payload.entity_id,
        action_url=payload.action_url,
        data=payload.data,
        is_read=False,
    )
    db.add(notification)
    db.flush()
    return notification


def format_status(status: str) -> str:
    """Render an order status for display: ``out_for_delivery`` -> ``Out For Delivery``."""
    return re.sub(r"\b\w", lambda match: match.group(0).upper(), status.replace("_", " "))


def notification_kind_for_status(status: str) -> str:
    """Map an order status to the notification kind shown to users."""
    if status in ("confirmed", "delivered"):
        return "success"
    if status == "rejected":
        return "error"
    return "info"


def handle_notification_create(db: Session, payload: Mapping[str, Any]) -> HandlerResult:
    try:
        data = NotificationCreatePayload.model_validate(payload)
    except ValidationError as exc:
        return _invalid_payload(MessageType.NOTIFICATION_CREATE, exc)

    create_notification(db, data)
    return HandlerResult.ok()


def handle_notification_update(db: Session, payload: Mapping[str, Any]) -> HandlerResult:
    try:
        data = NotificationUpdatePayload.model_validate(payload)
    except ValidationError as exc:
        return _invalid_payload(MessageType.NOTIFICATION_UPDATE, exc)

    notification = db.get(Notification, data.notification_id)
    if notification is None:
        return HandlerResult.non_retryable(f"Notification {data.notification_id} not found")

    if data.title is not None:
        notification.title = data.title
    if data.message is not None:
        notification.message = data.message
    if data.type is not None:
        notification.kind = data.type
    if data.is_read is not None:
        notification.is_read = data.is_read
    db.flush()
    return HandlerResult.ok()


def handle_notification_delete(db: Session, payload: Mapping[str, Any]) -> HandlerResult:
    try:
        data = NotificationDeletePayload.model_validate(payload)
    except ValidationError as exc:
        return _invalid_payload(MessageType.NOTIFICATION_DELETE, exc)

    notification = db.get(Notification, data.notification_id)
    if notification is None:
        return HandlerResult.non_retryable(f"Notification {data.notification_id} not found")

    db.delete(notification)
    db.flush()
    return HandlerResult.ok()


def handle_delivery_assign(db: Session, payload: Mapping[str, Any]) -> HandlerResult:
    """Notify the delivery partner, the retailer and the wholesaler of an assignment."""
    try:
        data = DeliveryAssignPayload.model_validate(payload)
    except ValidationError as exc:
        return _invalid_payload(MessageType.DELIVERY_ASSIGN, exc)

    details = data.order_details
    retailer = details.retailer_info
    wholesaler = details.wholesaler_info

    create_notification(
        db,
        NotificationCreatePayload(
            user_id=data.delivery_partner_id,
            title="New Delivery Assignment",
            message=(
                f"You have been assigned to deliver order #{details.order_number} "
                f"to {retailer.business_name} in {retailer.city or 'your area'}."
            ),
            type="info",
            entity_type="delivery",
            entity_id=data.order_id,
            action_url=f"/delivery-partner/tracking/{data.order_id}",
            data={
                "pickup_address": wholesaler.address,
                "pickup_city": wholesaler.city,
                "pickup_pincode": wholesaler.pincode,
                "pickup_phone": wholesaler.phone,
                "pickup_business_name": wholesaler.business_name,
                "address": retailer.address,
                "city": retailer.city,
                "pincode": retailer.pincode,
                "phone": retailer.phone,
                "business_name": retailer.business_name,
                "instructions": data.instructions,
            },
        ),
    )
    create_notification(
        db,
        NotificationCreatePayload(
            user_id=data.retailer_id,
            title="Delivery Partner Assigned",
            message=(
                "A delivery partner has been assigned to deliver your order "
                f"#{details.order_number}."
            ),
            type="info",
            entity_type="delivery",
            entity_id=data.order_id,
            action_url=f"/orders/{data.order_id}",
        ),
    )
    create_notification(
        db,
        NotificationCreatePayload(
            user_id=data.wholesaler_id,
            title="Delivery Partner Assigned",
            message=(
                f"A delivery partner has been assigned to deliver order #{details.order_number} "
                f"to {retailer.business_name}."
            ),
            type="info",
            entity_type="delivery",
            entity_id=data.order_id,
            action_url=f"/orders/{data.order_id}",
        ),
    )
    return HandlerResult.ok()


def handle_order_status_update(db: Session, payload: Mapping[str, Any]) -> HandlerResult:
    """Notify every party on the order about its new status."""
    try:
        data = OrderStatusUpdatePayload.model_validate(payload)
    except ValidationError as exc:
        return _invalid_payload(MessageType.ORDER_STATUS_UPDATE, exc)

    display_status = format_status(data.status)
    kind = notification_kind_for_status(data.status)
    order_number = data.order_details.order_number
    status_text = data.status.lower()

    recipients = [
        (
            data.retailer_id,
            f"Order Status Updated: {display_status}",
            f"Your order #{order_number} has been {status_text}.",
            f"/orders/{data.order_id}",
        ),
        (
            data.wholesaler_id,
            f"Order Status Updated: {display_status}",
            f"Order #{order_number} has been {status_text}.",
            f"/orders/{data.order_id}",
        ),
    ]
    if data.delivery_partner_id:
        recipients.append(
            (
                data.delivery_partner_id,
                f"Delivery Update: {display_status}",
                f"Delivery for order #{order_number} has been {status_text}.",
                f"/delivery-partner/tracking/{data.order_id}",
            )
        )

    for user_id, title, message, action_url in recipients:
        create_notification(
            db,
            NotificationCreatePayload(
                user_id=user_id,
                title=title,
                message=message,
                type=kind,
                entity_type="order",
                entity_id=data.order_id,
                action_url=action_url,
            ),
        )
    return HandlerResult.ok()


def handle_payment_status_update(db: Session, payload: Mapping[str, Any]) -> HandlerResult:
    try:
        data = PaymentStatusUpdatePayload.model_validate(payload)
    except ValidationError as exc:
        return _invalid_payload(MessageType.PAYMENT_STATUS_UPDATE, exc)

    order_number = data.order_number
    if data.status in ("paid", "success"):
        title = "Payment Successful"
        message = (
            f"Your payment of ₹{data.amount:.2f} for order #{order_number} "
            "has been completed successfully."
        )
        kind = "success"
    elif data.status == "failed":
        title = "Payment Failed"
        message = (
            f"Your payment for order #{order_number} has failed. "
            "Please try again or contact support."
        )
        kind = "error"
    elif data.status == "pending":
        title = "Payment Processing"
        message = (
            f"Your payment for order #{order_number} is being processed. "
            "We'll notify you once it's completed."
        )
        kind = "info"
    else:
        title = "Payment Update"
        message = f"Payment status for order #{order_number} has been updated to {data.status}."
        kind = "info"

    create_notification(
        db,
        NotificationCreatePayload(
            user_id=data.user_id,
            title=title,
            message=message,
            type=kind,
            entity_type="payment",
            entity_id=data.order_id,
            action_url=f"/orders/{data.order_id}",
        ),
    )
    return HandlerResult.ok()


MESSAGE_HANDLERS: dict[str, MessageHandler] = {
    MessageType.NOTIFICATION_CREATE.value: handle_notification_create,
    MessageType.NOTIFICATION_UPDATE.value: handle_notification_update,
    MessageType.NOTIFICATION_DELETE.value: handle_notification_delete,
    MessageType.DELIVERY_ASSIGN.value: handle_delivery_assign,
    MessageType.ORDER_STATUS_UPDATE.value: handle_order_status_update,
    MessageType.PAYMENT_STATUS_UPDATE.value: handle_payment_status_update,
}
