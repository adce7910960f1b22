"""Scheduled trigger for queue processing and retention cleanup."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from bandhu_queue.api.dependencies import QueueServiceDep, require_cron_api_key
from bandhu_queue.core.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/cron",
    tags=["cron"],
    dependencies=[Depends(require_cron_api_key)],
)


@router.get("/process-queue")
async def process_queue(queue: QueueServiceDep) -> JSONResponse:
    """Process one batch and purge old ledger records.

    Cleanup runs even when the batch fails; each reports its own error.

    Returns:
        `{success, processedCount, cleanedUp}` plus `error` / `cleanupError`
        when either step failed. HTTP 500 if the batch failed.
    """
    batch = queue.process_next_batch(batch_size=settings.queue_cron_batch_size)
    cleanup = queue.cleanup_processed_messages(older_than=settings.queue_retention_days)

    body: dict[str, object] = {
        "success": batch.success,
        "processedCount": batch.processed_count,
        "cleanedUp": cleanup.deleted_count,
    }
    if not batch.success:
        body["error"] = batch.error
    if not cleanup.success:
        logger.warning("Scheduled cleanup failed: %s", cleanup.error)
        body["cleanupError"] = cleanup.error

    status_code = status.HTTP_200_OK if batch.success else status.HTTP_500_INTERNAL_SERVER_ERROR
    return JSONResponse(status_code=status_code, content=body)
