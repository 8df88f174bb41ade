"""
Tests for SQLAlchemy database models and their constraints.
"""

import uuid
from datetime import timedelta

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from sdlc_backoffice.models.db import (
    DEFAULT_BASE_BRANCH,
    Development,
    DevelopmentStatus,
    Project,
    Repository,
    WebhookEvent,
    utc_now,
)


def _development(**overrides) -> Development:
    values = dict(
        project_id=uuid.uuid4(),
        jira_issue_id="100",
        jira_issue_key="TEST-100",
        jira_project_key="TEST",
        repository_url="https://github.com/example/test-api",
        branch_name="feature/TEST-100",
        git_access_token="ghp_test",
    )
    values.update(overrides)
    return Development(**values)


class TestProjectModel:
    """Tests for Project and its owned repositories."""

    def test_repository_defaults(self, db_session: Session, sample_project: Project):
        repository = sample_project.repositories[0]

        assert repository.base_branch == DEFAULT_BASE_BRANCH
        assert repository.project_id == sample_project.id
        assert repository.position == 0

    def test_generated_repository_id(self, db_session: Session, sample_project: Project):
        sample_project.repositories.append(
            Repository(
                url="https://github.com/example/other",
                description="Other",
                git_access_token="t",
            )
        )
        db_session.commit()

        new_repo = sample_project.repositories[1]
        assert len(new_repo.repository_id) == 32
        assert new_repo.position == 1

    def test_unique_jira_project_key(self, db_session: Session, sample_project: Project):
        db_session.add(
            Project(
                name="Clone",
                description="d",
                scope="s",
                jira_project_key=sample_project.jira_project_key,
                jira_project_name="n",
                jira_project_url="https://example.com",
            )
        )

        with pytest.raises(IntegrityError):
            db_session.flush()
        db_session.rollback()

    def test_delete_cascades_to_repositories(
        self, db_session: Session, sample_project: Project
    ):
        db_session.delete(sample_project)
        db_session.commit()

        assert db_session.query(Repository).count() == 0


class TestDevelopmentModel:
    """Tests for Development status invariants."""

    def test_ready_defaults(self, db_session: Session):
        development = _development()
        db_session.add(development)
        db_session.flush()

        assert development.status is DevelopmentStatus.READY
        assert development.completed_at is None

    @pytest.mark.parametrize(
        "status", [DevelopmentStatus.COMPLETED, DevelopmentStatus.FAILED]
    )
    def test_terminal_status_requires_completed_at(
        self, db_session: Session, status: DevelopmentStatus
    ):
        db_session.add(_development(status=status, completed_at=None))

        with pytest.raises(IntegrityError):
            db_session.flush()
        db_session.rollback()

    def test_ready_rejects_completed_at(self, db_session: Session):
        db_session.add(_development(completed_at=utc_now()))

        with pytest.raises(IntegrityError):
            db_session.flush()
        db_session.rollback()

    @pytest.mark.parametrize("field", ["branch_name", "git_access_token"])
    def test_branch_and_token_required_unless_failed(
        self, db_session: Session, field: str
    ):
        db_session.add(_development(**{field: None}))

        with pytest.raises(IntegrityError):
            db_session.flush()
        db_session.rollback()

    def test_failed_development_may_omit_branch_and_token(self, db_session: Session):
        development = _development(
            branch_name=None,
            git_access_token=None,
            status=DevelopmentStatus.FAILED,
            error_message="boom",
            completed_at=utc_now(),
        )
        db_session.add(development)
        db_session.flush()

        assert development.branch_name is None

    def test_is_terminal(self):
        assert DevelopmentStatus.READY.is_terminal is False
        assert DevelopmentStatus.COMPLETED.is_terminal is True
        assert DevelopmentStatus.FAILED.is_terminal is True


class TestWebhookEventModel:
    """Tests for WebhookEvent."""

    def test_raw_payload_round_trips_verbatim(self, db_session: Session):
        payload = {"webhookEvent": "jira:issue_updated", "list": [1, "two", None]}
        event = WebhookEvent(
            jira_issue_id="1",
            jira_issue_key="TEST-1",
            jira_project_key="TEST",
            status="Done",
            event_type="jira:issue_updated",
            raw_payload=payload,
        )
        db_session.add(event)
        db_session.commit()
        db_session.expire_all()

        assert db_session.get(WebhookEvent, event.id).raw_payload == payload

    def test_processed_before_received_rejected(self, db_session: Session):
        now = utc_now()
        db_session.add(
            WebhookEvent(
                jira_issue_id="1",
                jira_issue_key="TEST-1",
                jira_project_key="TEST",
                status="Done",
                event_type="jira:issue_updated",
                received_at=now,
                processed_at=now - timedelta(seconds=1),
            )
        )

        with pytest.raises(IntegrityError):
            db_session.flush()
        db_session.rollback()
