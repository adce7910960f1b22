"""Administrative setup endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from bandhu_queue.api.dependencies import QueueServiceDep, require_setup_token

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(require_setup_token)],
)


@router.post("/create-message-queue-tables")
async def create_message_queue_tables(queue: QueueServiceDep) -> JSONResponse:
    """Create the queue tables if they are missing."""
    result = queue.initialize()
    if not result.success:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": result.error},
        )
    if result.created:
        message = "Message queue tables created successfully"
    else:
        message = "Message queue tables already exist"
    return JSONResponse(content={"message": message, "created": result.created})
