"""
SQLAlchemy database models for SDLC Backoffice.

These models represent the persisted state of the SDLC automation platform:
projects (with their owned repositories), inbound tracker webhook events and
the development records produced by the automation.
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func

DEFAULT_BASE_BRANCH = "main"

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JsonPayload = JSON().with_variant(JSONB(), "postgresql")


def utc_now() -> datetime:
    """Timezone-aware current time used for all server-set timestamps."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on read)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def new_repository_id() -> str:
    """Generate a server-side repository identifier."""
    return uuid.uuid4().hex


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class DevelopmentStatus(str, enum.Enum):
    """Lifecycle status of a development record."""

    READY = "ready"  # Work started, waiting for the automation outcome
    COMPLETED = "completed"  # Terminal: changes pushed, details recorded
    FAILED = "failed"  # Terminal: error_message recorded

    @property
    def is_terminal(self) -> bool:
        return self is not DevelopmentStatus.READY


class Project(Base):
    """Administrative grouping of one tracker project and its repositories."""

    __tablename__ = "projects"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    scope: Mapped[str] = mapped_column(Text, nullable=False)
    jira_project_key: Mapped[str] = mapped_column(String(64), nullable=False)
    jira_project_name: Mapped[str] = mapped_column(String(255), nullable=False)
    jira_project_url: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        onupdate=utc_now,
        nullable=False,
    )

    # Relationships
    repositories: Mapped[list["Repository"]] = relationship(
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="Repository.position",
        collection_class=ordering_list("position"),
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return (
            f"<Project(id={self.id}, name={self.name!r}, "
            f"jira_project_key={self.jira_project_key!r})>"
        )


class Repository(Base):
    """Source repository owned by exactly one project."""

    __tablename__ = "project_repositories"

    repository_id: Mapped[str] = mapped_column(
        String(32), primary_key=True, default=new_repository_id
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    url: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    git_access_token: Mapped[str] = mapped_column(
        Text, nullable=False
    )  # Stored in plaintext
    base_branch: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default=DEFAULT_BASE_BRANCH,
        server_default=DEFAULT_BASE_BRANCH,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    project: Mapped["Project"] = relationship(back_populates="repositories")

    def __repr__(self) -> str:
        return f"<Repository(repository_id={self.repository_id!r}, url={self.url!r})>"


class WebhookEvent(Base):
    """Immutable record of an inbound tracker notification."""

    __tablename__ = "webhook_events"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    jira_issue_id: Mapped[str] = mapped_column(String(64), nullable=False)
    jira_issue_key: Mapped[str] = mapped_column(String(64), nullable=False)
    jira_project_key: Mapped[str] = mapped_column(String(64), nullable=False)
    summary: Mapped[str] = mapped_column(Text, nullable=False, default="")
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        "issue_status", String(100), nullable=False
    )  # Tracker status after the change
    previous_status: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    event_type: Mapped[str] = mapped_column(String(100), nullable=False)

    received_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    processed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    raw_payload: Mapped[Optional[Any]] = mapped_column(JsonPayload, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint(
            "processed_at IS NULL OR processed_at >= received_at",
            name="ck_webhook_events_processed_after_received",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<WebhookEvent(id={self.id}, "
            f"jira_issue_key={self.jira_issue_key!r}, "
            f"event_type={self.event_type!r})>"
        )


class Development(Base):
    """One automated unit of work against a tracker ticket."""

    __tablename__ = "developments"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    # Loose reference: developments outlive the project they were run for
    project_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    jira_issue_id: Mapped[str] = mapped_column(String(64), nullable=False)
    jira_issue_key: Mapped[str] = mapped_column(String(64), nullable=False)
    jira_project_key: Mapped[str] = mapped_column(String(64), nullable=False)
    summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    repository_url: Mapped[str] = mapped_column(Text, nullable=False)
    git_access_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    branch_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    pr_mr_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[DevelopmentStatus] = mapped_column(
        Enum(
            DevelopmentStatus,
            name="development_status",
            native_enum=False,
            create_constraint=True,
            length=20,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        default=DevelopmentStatus.READY,
        server_default=DevelopmentStatus.READY.value,
    )
    development_details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        onupdate=utc_now,
        nullable=False,
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        CheckConstraint(
            "(status = 'ready' AND completed_at IS NULL) OR "
            "(status IN ('completed', 'failed') AND completed_at IS NOT NULL)",
            name="ck_developments_completed_at_matches_status",
        ),
        CheckConstraint(
            "status = 'failed' OR "
            "(branch_name IS NOT NULL AND git_access_token IS NOT NULL)",
            name="ck_developments_branch_and_token_unless_failed",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<Development(id={self.id}, "
            f"jira_issue_key={self.jira_issue_key!r}, "
            f"status={self.status!r})>"
        )


# ===== Indexes =====
# Declared outside the classes so descending keys can reference mapped columns.
# Every index here is created idempotently by sdlc_backoffice.db.schema.

Index("idx_projects_jira_project_key_unique", Project.jira_project_key, unique=True)
Index("idx_projects_name", Project.name)
Index("idx_projects_created_at_desc", Project.created_at.desc())

Index("idx_webhook_events_jira_issue_id", WebhookEvent.jira_issue_id)
Index("idx_webhook_events_jira_issue_key", WebhookEvent.jira_issue_key)
Index("idx_webhook_events_jira_project_key", WebhookEvent.jira_project_key)
Index("idx_webhook_events_created_at_desc", WebhookEvent.created_at.desc())
Index(
    "idx_webhook_events_status_created_at",
    WebhookEvent.status,
    WebhookEvent.created_at.desc(),
)

Index("idx_developments_project_id", Development.project_id)
Index("idx_developments_jira_issue_id", Development.jira_issue_id)
Index("idx_developments_jira_issue_key", Development.jira_issue_key)
Index("idx_developments_jira_project_key", Development.jira_project_key)
Index(
    "idx_developments_status_created_at",
    Development.status,
    Development.created_at.desc(),
)
Index(
    "idx_developments_project_status_created_at",
    Development.project_id,
    Development.status,
    Development.created_at.desc(),
)
