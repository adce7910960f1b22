# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import timedelta
from itertools import count
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("PYTEST_RUNNING", "true")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from bandhu_queue.core.settings import settings
from bandhu_queue.db.session import Base
from bandhu_queue.db.session import get_db as app_get_session
from bandhu_queue.db.time import utcnow
from bandhu_queue.main import app as fastapi_app
from bandhu_queue.models import STATUS_PENDING, MessageType, QueueMessage
from bandhu_queue.services.queue_service import QueueService

TEST_DB_URL = "sqlite://"
CRON_API_KEY = "cron-test-key"
SETUP_SECRET_TOKEN = "setup-test-token"

_MESSAGE_COUNTER = count(1)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )
    session = SessionLocal()

    try:
        yield session
    finally:
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture(autouse=True)
def trigger_secrets() -> Iterator[None]:
    """Configure known trigger secrets for every test."""
    original = (settings.cron_api_key, settings.setup_secret_token)
    settings.cron_api_key = CRON_API_KEY
    settings.setup_secret_token = SETUP_SECRET_TOKEN
    try:
        yield
    finally:
        settings.cron_api_key, settings.setup_secret_token = original


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def queue_service(db_session: Session) -> QueueService:
    """Queue service using the built-in handlers."""
    return QueueService(db_session)


def _notification_payload(user_id: str = "retailer-1", **overrides: Any) -> dict[str, Any]:
    """Return a valid `notification:create` payload document."""
    payload: dict[str, Any] = {
        "userId": user_id,
        "title": "Stock update",
        "message": "Your restock request was received.",
        "type": "info",
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def make_message(db_session: Session) -> Callable[..., QueueMessage]:
    """Insert a queue message directly, bypassing enqueue.

    `age_seconds` controls `created_at` so tests can pin claim order.
    """

    def _make(
        message_type: MessageType | str = MessageType.NOTIFICATION_CREATE,
        payload: dict[str, Any] | None = None,
        *,
        status: str = STATUS_PENDING,
        age_seconds: int = 60,
        **fields: Any,
    ) -> QueueMessage:
        n = next(_MESSAGE_COUNTER)
        type_value = message_type.value if isinstance(message_type, MessageType) else message_type
        message = QueueMessage(
            id=f"00000000-0000-4000-8000-{n:012d}",
            message_type=type_value,
            payload=payload if payload is not None else _notification_payload(),
            status=status,
            retry_count=fields.pop("retry_count", 0),
            max_retries=fields.pop("max_retries", 3),
            created_at=utcnow() - timedelta(seconds=age_seconds),
            **fields,
        )
        db_session.add(message)
        db_session.flush()
        return message

    return _make


@pytest.fixture()
def notification_payload() -> Callable[..., dict[str, Any]]:
    """Factory for valid `notification:create` payload documents."""
    return _notification_payload
