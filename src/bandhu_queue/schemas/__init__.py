"""Pydantic schemas for queue payloads and API requests."""

from .payloads import (
    DeliveryAssignPayload,
    DeliveryOrderDetails,
    NotificationCreatePayload,
    NotificationDeletePayload,
    NotificationUpdatePayload,
    OrderStatusUpdatePayload,
    OrderSummary,
    PartyInfo,
    PaymentStatusUpdatePayload,
)
from .queue import ProcessBatchRequest

__all__ = [
    "DeliveryAssignPayload",
    "DeliveryOrderDetails",
    "NotificationCreatePayload",
    "NotificationDeletePayload",
    "NotificationUpdatePayload",
    "OrderStatusUpdatePayload",
    "OrderSummary",
    "PartyInfo",
    "PaymentStatusUpdatePayload",
    "ProcessBatchRequest",
]
