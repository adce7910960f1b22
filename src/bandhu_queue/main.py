"""Main entry point for the Retail Bandhu queue service."""

from __future__ import annotations

from fastapi import FastAPI

from bandhu_queue.api import admin_router, cron_router, queue_router
from bandhu_queue.core.logging import configure_logging
from bandhu_queue.core.settings import settings

configure_logging()

# Initialize FastAPI app
app = FastAPI(
    title="Retail Bandhu Queue",
    description="Outbound notification queue for retailers, wholesalers and delivery partners",
    version=settings.app_version,
)

# Include API routers
app.include_router(cron_router, prefix="/api")
app.include_router(queue_router, prefix="/api")
app.include_router(admin_router, prefix="/api")


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("bandhu_queue.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
