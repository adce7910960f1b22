"""Shared API dependencies for trigger authorization and the queue service."""

from typing import Annotated

from fastapi import Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from bandhu_queue.core.security import secret_matches
from bandhu_queue.core.settings import settings
from bandhu_queue.db.session import get_db
from bandhu_queue.services.queue_service import QueueService

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
    )


def require_cron_api_key(
    api_key: Annotated[str | None, Query(alias="apiKey")] = None,
) -> None:
    """Reject scheduler calls whose `apiKey` does not match CRON_API_KEY.

    Raises:
        HTTPException: 401 if the key is missing, wrong, or not configured.
    """
    if not secret_matches(api_key, settings.cron_api_key):
        raise _unauthorized()


def require_setup_token(
    token: Annotated[str | None, Query()] = None,
) -> None:
    """Reject calls whose `token` does not match SETUP_SECRET_TOKEN.

    Raises:
        HTTPException: 401 if the token is missing, wrong, or not configured.
    """
    if not secret_matches(token, settings.setup_secret_token):
        raise _unauthorized()


def get_queue_service(db: SessionDep) -> QueueService:
    """Build a queue service bound to the request's session."""
    return QueueService(db)


# Type alias for queue service dependency
QueueServiceDep = Annotated[QueueService, Depends(get_queue_service)]
