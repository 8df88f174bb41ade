"""
Sample data for local development and demos.

Seeding is destructive-and-replace for the ECOM sample only: the previous
sample project, webhook event and developments are removed before fresh
copies are inserted, so running it repeatedly never accumulates duplicates.
Unrelated records are left alone.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy.orm import Session

from sdlc_backoffice.db.repositories import (
    DevelopmentRepository,
    ProjectRepository,
    WebhookEventRepository,
)
from sdlc_backoffice.models.db import (
    Development,
    DevelopmentStatus,
    Project,
    Repository,
    WebhookEvent,
    utc_now,
)

logger = logging.getLogger(__name__)

SAMPLE_PROJECT_KEY = "ECOM"
SAMPLE_ISSUE_KEY = "ECOM-123"
SAMPLE_REPOSITORY_URL = "https://github.com/storos/sdlc-agent-test-project"
SAMPLE_TOKEN = "ghp_test_token_replace_with_real_token"


@dataclass
class SeedResult:
    """Rows removed and inserted by a seed run."""

    project: Project
    webhook_event: WebhookEvent
    developments: list[Development]
    removed_projects: int = 0
    removed_webhook_events: int = 0
    removed_developments: int = 0


def _sample_project() -> Project:
    project = Project(
        name="E-Commerce Platform",
        description="Microservices-based e-commerce system for online retail",
        scope=(
            "Backend services written in Go using Gin framework. Follow clean "
            "architecture pattern: handlers, services, repositories. Use "
            "structured logging. Follow RESTful API design principles. Write "
            "unit tests for all services."
        ),
        jira_project_key=SAMPLE_PROJECT_KEY,
        jira_project_name="E-Commerce",
        jira_project_url="https://company.atlassian.net/projects/ECOM",
    )
    project.repositories.append(
        Repository(
            url=SAMPLE_REPOSITORY_URL,
            description=(
                "Main API backend service handling products, orders, and payments"
            ),
            git_access_token=SAMPLE_TOKEN,
        )
    )
    return project


def seed_sample_data(session: Session) -> SeedResult:
    """
    Replace the ECOM sample records.

    Args:
        session: Open session; the caller commits

    Returns:
        SeedResult with the inserted rows and the number of rows replaced
    """
    project_repo = ProjectRepository(session)
    webhook_repo = WebhookEventRepository(session)
    development_repo = DevelopmentRepository(session)

    removed_projects = project_repo.delete_by_jira_key(SAMPLE_PROJECT_KEY)
    removed_events = webhook_repo.delete_by_issue_key(SAMPLE_ISSUE_KEY)
    removed_developments = development_repo.delete_by_jira_project_key(
        SAMPLE_PROJECT_KEY
    )

    project = _sample_project()
    session.add(project)
    session.flush()
    logger.info(f"Seeded project {project.id} ({SAMPLE_PROJECT_KEY})")

    now = utc_now()
    event = webhook_repo.record(
        received_at=now,
        jira_issue_id="10001",
        jira_issue_key=SAMPLE_ISSUE_KEY,
        jira_project_key=SAMPLE_PROJECT_KEY,
        summary="Add user authentication endpoint",
        description=(
            "Implement JWT-based authentication for /api/auth/login endpoint "
            "with email and password validation"
        ),
        status="In Development",
        previous_status="To Do",
        event_type="jira:issue_updated",
        raw_payload={
            "webhookEvent": "jira:issue_updated",
            "issue": {"id": "10001", "key": SAMPLE_ISSUE_KEY},
            "changelog": {
                "items": [
                    {
                        "field": "status",
                        "fromString": "To Do",
                        "toString": "In Development",
                    }
                ]
            },
        },
    )

    completed = development_repo.create(
        project_id=project.id,
        jira_issue_id="10001",
        jira_issue_key=SAMPLE_ISSUE_KEY,
        jira_project_key=SAMPLE_PROJECT_KEY,
        summary="Add user authentication endpoint",
        description="Implement JWT-based authentication for /api/auth/login endpoint",
        repository_url=SAMPLE_REPOSITORY_URL,
        git_access_token=SAMPLE_TOKEN,
        branch_name="feature/ECOM-123",
        status=DevelopmentStatus.COMPLETED,
        pr_mr_url=f"{SAMPLE_REPOSITORY_URL}/pull/1",
        development_details=(
            "Created /api/auth/login endpoint with JWT token generation. Added "
            "user validation middleware. Updated authentication documentation."
        ),
        created_at=now - timedelta(hours=1),
        completed_at=now - timedelta(minutes=30),
    )
    failed = development_repo.create(
        project_id=project.id,
        jira_issue_id="10002",
        jira_issue_key="ECOM-124",
        jira_project_key=SAMPLE_PROJECT_KEY,
        summary="Fix payment processing bug",
        description="Debug and fix payment gateway timeout issue",
        repository_url="https://github.com/company/unknown-repo",
        git_access_token=None,
        branch_name=None,
        status=DevelopmentStatus.FAILED,
        error_message=(
            "Repository 'https://github.com/company/unknown-repo' from JIRA "
            "components not found in project configuration"
        ),
        created_at=now - timedelta(hours=2),
        completed_at=now - timedelta(hours=2),
    )
    ready = development_repo.start(
        project_id=project.id,
        jira_issue_id="10003",
        jira_issue_key="ECOM-125",
        jira_project_key=SAMPLE_PROJECT_KEY,
        summary="Add product search functionality",
        description="Implement full-text search for products with filters",
        repository_url=SAMPLE_REPOSITORY_URL,
        git_access_token=SAMPLE_TOKEN,
        branch_name="feature/ECOM-125",
        created_at=now,
    )

    logger.info(
        f"Seed complete: replaced {removed_projects} project(s), "
        f"{removed_events} webhook event(s), {removed_developments} development(s)"
    )
    return SeedResult(
        project=project,
        webhook_event=event,
        developments=[completed, failed, ready],
        removed_projects=removed_projects,
        removed_webhook_events=removed_events,
        removed_developments=removed_developments,
    )
