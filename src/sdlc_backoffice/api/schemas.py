"""
API schemas for SDLC Backoffice.

Pydantic models for request/response validation. The request models are
shared with the API client so both sides reject the same payloads.
"""

import re
from datetime import datetime
from typing import Annotated, Any, Optional
from uuid import UUID

from pydantic import AfterValidator, BaseModel, BeforeValidator, Field, field_validator

from sdlc_backoffice.models.db import DEFAULT_BASE_BRANCH, DevelopmentStatus

URL_PATTERN = re.compile(r"^https?://.+")


def _not_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be blank")
    return value


def _http_url(value: str) -> str:
    if not URL_PATTERN.match(value):
        raise ValueError("must start with http:// or https://")
    return value


def _base_branch(value: Any) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        return DEFAULT_BASE_BRANCH
    return value.strip() if isinstance(value, str) else value


NonBlankStr = Annotated[str, AfterValidator(_not_blank)]
HttpUrlStr = Annotated[str, AfterValidator(_not_blank), AfterValidator(_http_url)]
BaseBranchStr = Annotated[str, BeforeValidator(_base_branch)]


# ===== Repository Schemas =====


class RepositoryCreate(BaseModel):
    """Request schema for adding a repository to a project."""

    url: HttpUrlStr
    description: NonBlankStr
    git_access_token: NonBlankStr
    base_branch: BaseBranchStr = DEFAULT_BASE_BRANCH


class RepositoryUpdate(BaseModel):
    """
    Request schema for a partial repository update.

    Omitted fields are left unchanged. Supplied fields are validated like
    RepositoryCreate; a blank base_branch resets it to the default.
    """

    url: Optional[HttpUrlStr] = None
    description: Optional[NonBlankStr] = None
    git_access_token: Optional[NonBlankStr] = None
    base_branch: Optional[str] = None

    @field_validator("url", "description", "git_access_token")
    @classmethod
    def _reject_null(cls, v: Optional[str]) -> str:
        if v is None:
            raise ValueError("must not be null")
        return v

    @field_validator("base_branch", mode="before")
    @classmethod
    def _default_branch(cls, v: Any) -> Any:
        return _base_branch(v)


class RepositoryResponse(BaseModel):
    """Response schema for Repository."""

    repository_id: str
    url: str
    description: str
    git_access_token: str
    base_branch: str

    model_config = {"from_attributes": True}


# ===== Project Schemas =====


class ProjectCreate(BaseModel):
    """Request schema for creating a project."""

    name: NonBlankStr
    description: NonBlankStr
    scope: NonBlankStr
    jira_project_key: NonBlankStr
    jira_project_name: NonBlankStr
    jira_project_url: HttpUrlStr
    repositories: list[RepositoryCreate] = Field(default_factory=list)


class ProjectUpdate(BaseModel):
    """
    Request schema for a partial project update.

    Only supplied fields change. A supplied repositories list replaces the
    project's repositories as a whole; each entry gets a fresh id.
    """

    name: Optional[NonBlankStr] = None
    description: Optional[NonBlankStr] = None
    scope: Optional[NonBlankStr] = None
    jira_project_key: Optional[NonBlankStr] = None
    jira_project_name: Optional[NonBlankStr] = None
    jira_project_url: Optional[HttpUrlStr] = None
    repositories: Optional[list[RepositoryCreate]] = None

    @field_validator(
        "name",
        "description",
        "scope",
        "jira_project_key",
        "jira_project_name",
        "jira_project_url",
        "repositories",
    )
    @classmethod
    def _reject_null(cls, v: Any) -> Any:
        # Validators only run for supplied fields, so None here is an explicit null
        if v is None:
            raise ValueError("must not be null")
        return v


class ProjectResponse(BaseModel):
    """Response schema for Project, including its repositories."""

    id: UUID
    name: str
    description: str
    scope: str
    jira_project_key: str
    jira_project_name: str
    jira_project_url: str
    repositories: list[RepositoryResponse] = []
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ===== Development Schemas =====


class DevelopmentResponse(BaseModel):
    """Response schema for Development."""

    id: UUID
    project_id: UUID
    jira_issue_id: str
    jira_issue_key: str
    jira_project_key: str
    summary: Optional[str] = None
    description: Optional[str] = None
    repository_url: str
    git_access_token: Optional[str] = None
    branch_name: Optional[str] = None
    pr_mr_url: Optional[str] = None
    status: DevelopmentStatus
    development_details: Optional[str] = None
    error_message: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


# ===== Webhook Event Schemas =====


class WebhookEventResponse(BaseModel):
    """Response schema for WebhookEvent. raw_payload is passed through as stored."""

    id: UUID
    jira_issue_id: str
    jira_issue_key: str
    jira_project_key: str
    summary: str
    description: Optional[str] = None
    status: str
    previous_status: Optional[str] = None
    event_type: str
    received_at: datetime
    processed_at: Optional[datetime] = None
    raw_payload: Optional[Any] = None
    created_at: datetime

    model_config = {"from_attributes": True}


# ===== Generic Responses =====


class MessageResponse(BaseModel):
    """Acknowledgement returned by update and delete operations."""

    message: str


class RepositoryCreatedResponse(MessageResponse):
    """Acknowledgement returned when a repository is added."""

    repository_id: str
