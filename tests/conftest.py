"""
Pytest configuration and fixtures for SDLC Backoffice tests.

This module provides shared fixtures for testing database models, repositories,
the API and the client.
"""

import os

# The connection module builds its engine at import time; point it at SQLite
# before anything imports sdlc_backoffice.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import uuid  # noqa: E402
from datetime import timedelta  # noqa: E402
from typing import Generator  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from sdlc_backoffice.db.connection import enable_sqlite_savepoints  # noqa: E402
from sdlc_backoffice.db.schema import bootstrap_schema  # noqa: E402
from sdlc_backoffice.models.db import (  # noqa: E402
    Development,
    DevelopmentStatus,
    Project,
    Repository,
    WebhookEvent,
    utc_now,
)


def make_sqlite_engine() -> Engine:
    """In-memory SQLite engine sharing one connection, with working savepoints."""
    return enable_sqlite_savepoints(
        create_engine(
            "sqlite:///:memory:",
            echo=False,
            connect_args={"check_same_thread": False},  # TestClient runs in a thread
            poolclass=StaticPool,
        )
    )


@pytest.fixture(scope="session")
def test_engine():
    """Create a test database engine using SQLite in-memory."""
    engine = make_sqlite_engine()
    bootstrap_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def empty_engine():
    """A fresh, uninitialized in-memory database for bootstrap tests."""
    engine = make_sqlite_engine()
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(test_engine) -> Generator[Session, None, None]:
    """
    Create a new database session for a test.

    Each test gets a fresh session inside a transaction that is rolled back
    after the test completes. Session commits and rollbacks only touch a
    savepoint, so code under test can commit freely.
    """
    connection = test_engine.connect()
    transaction = connection.begin()
    session = Session(bind=connection, join_transaction_mode="create_savepoint")

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def api_client(db_session: Session):
    """Create a test client for FastAPI with database dependency override."""
    from unittest.mock import patch

    from fastapi.testclient import TestClient

    from sdlc_backoffice.api.app import app
    from sdlc_backoffice.db.connection import get_db

    def override_get_db():
        try:
            yield db_session
            db_session.commit()
        except Exception:
            db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db

    # Disable lifespan startup checks for testing
    with patch("sdlc_backoffice.api.app.run_all_startup_checks"):
        client = TestClient(app)
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def sample_project(db_session: Session) -> Project:
    """Create a sample project with one repository."""
    project = Project(
        id=uuid.uuid4(),
        name="Test Project",
        description="A test project",
        scope="Go services, clean architecture",
        jira_project_key="TEST",
        jira_project_name="Test",
        jira_project_url="https://company.atlassian.net/projects/TEST",
    )
    project.repositories.append(
        Repository(
            repository_id="repo-001",
            url="https://github.com/example/test-api",
            description="Test API",
            git_access_token="ghp_test",
        )
    )
    db_session.add(project)
    db_session.commit()
    db_session.refresh(project)
    return project


@pytest.fixture
def sample_developments(db_session: Session, sample_project: Project) -> list[Development]:
    """Three developments for TEST, one per status, oldest first."""
    now = utc_now()
    common = dict(
        project_id=sample_project.id,
        jira_project_key="TEST",
        repository_url="https://github.com/example/test-api",
    )
    developments = [
        Development(
            jira_issue_id="1",
            jira_issue_key="TEST-1",
            branch_name="feature/TEST-1",
            git_access_token="ghp_test",
            status=DevelopmentStatus.COMPLETED,
            development_details="Done",
            created_at=now - timedelta(hours=3),
            completed_at=now - timedelta(hours=2),
            **common,
        ),
        Development(
            jira_issue_id="2",
            jira_issue_key="TEST-2",
            branch_name=None,
            status=DevelopmentStatus.FAILED,
            error_message="Repository not configured",
            created_at=now - timedelta(hours=2),
            completed_at=now - timedelta(hours=2),
            **common,
        ),
        Development(
            jira_issue_id="3",
            jira_issue_key="TEST-3",
            branch_name="feature/TEST-3",
            git_access_token="ghp_test",
            status=DevelopmentStatus.READY,
            created_at=now - timedelta(hours=1),
            **common,
        ),
    ]
    db_session.add_all(developments)
    db_session.commit()
    return developments


@pytest.fixture
def sample_webhook_events(db_session: Session) -> list[WebhookEvent]:
    """Two TEST events and one OTHER event, oldest first."""
    now = utc_now()
    events = [
        WebhookEvent(
            jira_issue_id="1",
            jira_issue_key="TEST-1",
            jira_project_key="TEST",
            summary="First",
            status="In Development",
            previous_status="To Do",
            event_type="jira:issue_updated",
            received_at=now - timedelta(minutes=30),
            raw_payload={"issue": {"key": "TEST-1"}, "nested": [1, 2, {"a": None}]},
        ),
        WebhookEvent(
            jira_issue_id="2",
            jira_issue_key="TEST-2",
            jira_project_key="TEST",
            summary="Second",
            status="Done",
            event_type="jira:issue_updated",
            received_at=now - timedelta(minutes=10),
        ),
        WebhookEvent(
            jira_issue_id="9",
            jira_issue_key="OTHER-9",
            jira_project_key="OTHER",
            summary="Unrelated",
            status="In Development",
            event_type="jira:issue_created",
            received_at=now - timedelta(minutes=20),
        ),
    ]
    db_session.add_all(events)
    db_session.commit()
    return events


@pytest.fixture
def live_client(api_client):
    """BackofficeClient whose requests are served by the FastAPI app."""
    import httpx

    from sdlc_backoffice.client import BackofficeClient, RetryConfig

    def forward(request: httpx.Request) -> httpx.Response:
        response = api_client.request(
            request.method,
            request.url.path,
            params=request.url.params,
            content=request.content,
            headers={"content-type": "application/json"},
        )
        return httpx.Response(response.status_code, content=response.content)

    with BackofficeClient(
        "http://testserver/api",
        retry_config=RetryConfig(max_retries=0),
        transport=httpx.MockTransport(forward),
    ) as client:
        yield client
