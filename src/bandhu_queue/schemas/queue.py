"""Request schemas for the queue trigger endpoints."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from bandhu_queue.models.queue_message import MessageType


class ProcessBatchRequest(BaseModel):
    """Optional body accepted by `POST /api/queue/process`."""

    model_config = ConfigDict(populate_by_name=True)

    batch_size: int | None = Field(
        default=None,
        alias="batchSize",
        description="Upper bound on messages claimed by this call.",
    )
    processor_id: str | None = Field(
        default=None,
        alias="processorId",
        description="Identifier recorded on claimed messages.",
    )
    message_types: list[MessageType] | None = Field(
        default=None,
        alias="messageTypes",
        description="Restrict processing to these message categories.",
    )
