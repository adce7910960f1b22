"""Pydantic schemas for queue message payloads.

Payloads travel through the queue as JSON documents with camelCase keys, the
shape producers have always written. Each handler validates its payload with
one of these models before touching the database.
"""
from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

NotificationKind = Literal["success", "info", "warning", "error"]


class PayloadModel(BaseModel):
    """Base for payload schemas: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict[str, Any]:
        """Serialize to the JSON document stored on the queue message."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class NotificationCreatePayload(PayloadModel):
    """Body of a `notification:create` message."""

    user_id: str = Field(..., min_length=1)
    title: str
    message: str
    type: NotificationKind = "info"
    entity_type: str | None = None
    entity_id: str | None = None
    action_url: str | None = None
    data: dict[str, Any] | None = None


class NotificationUpdatePayload(PayloadModel):
    """Body of a `notification:update` message; unset fields are left alone."""

    notification_id: str = Field(..., min_length=1)
    title: str | None = None
    message: str | None = None
    type: NotificationKind | None = None
    is_read: bool | None = None


class NotificationDeletePayload(PayloadModel):
    """Body of a `notification:delete` message."""

    notification_id: str = Field(..., min_length=1)


class PartyInfo(PayloadModel):
    """Contact details of a retailer or wholesaler."""

    business_name: str
    address: str | None = None
    city: str | None = None
    pincode: str | None = None
    phone: str | None = None


class DeliveryOrderDetails(PayloadModel):
    """Order summary attached to a delivery assignment."""

    order_number: str
    retailer_info: PartyInfo
    wholesaler_info: PartyInfo


class DeliveryAssignPayload(PayloadModel):
    """Body of a `delivery:assign` message."""

    order_id: str
    delivery_partner_id: str
    retailer_id: str
    wholesaler_id: str
    instructions: str | None = None
    order_details: DeliveryOrderDetails


class OrderSummary(PayloadModel):
    """Order number and total attached to a status update."""

    order_number: str
    total_amount: float


class OrderStatusUpdatePayload(PayloadModel):
    """Body of an `order:status_update` message."""

    order_id: str
    status: str
    previous_status: str
    retailer_id: str
    wholesaler_id: str
    delivery_partner_id: str | None = None
    order_details: OrderSummary


class PaymentStatusUpdatePayload(PayloadModel):
    """Body of a `payment:status_update` message."""

    order_id: str
    payment_id: str
    status: str
    previous_status: str
    amount: float
    user_id: str
    order_number: str
