"""On-demand queue processing endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Body, Depends, status
from fastapi.responses import JSONResponse

from bandhu_queue.api.dependencies import QueueServiceDep, require_setup_token
from bandhu_queue.core.settings import settings
from bandhu_queue.schemas.queue import ProcessBatchRequest

router = APIRouter(
    prefix="/queue",
    tags=["queue"],
    dependencies=[Depends(require_setup_token)],
)


@router.post("/process")
async def process_batch(
    queue: QueueServiceDep,
    request: Annotated[ProcessBatchRequest | None, Body()] = None,
) -> JSONResponse:
    """Process one batch of pending messages.

    Args:
        queue: Queue service bound to the request session
        request: Optional batch size, processor id and message type filter

    Returns:
        `{success, processedCount}`, or `{error}` with HTTP 500 on failure
    """
    request = request or ProcessBatchRequest()
    batch_size = (
        request.batch_size if request.batch_size is not None else settings.queue_default_batch_size
    )
    result = queue.process_next_batch(
        batch_size=batch_size,
        processor_id=request.processor_id,
        message_types=request.message_types,
    )
    if not result.success:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": result.error},
        )
    return JSONResponse(
        content={"success": result.success, "processedCount": result.processed_count}
    )


@router.get("/stats")
async def get_queue_stats(queue: QueueServiceDep) -> dict[str, int]:
    """Return message counts per status and the ledger size."""
    return queue.get_stats()
