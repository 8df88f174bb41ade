"""Custom exceptions for SDLC Backoffice."""

from datetime import datetime


class ProjectNotFoundError(Exception):
    """Raised when a project id or tracker key does not resolve."""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"Project not found: {identifier}")


class RepositoryNotFoundError(Exception):
    """Raised when a repository is not found within the given project."""

    def __init__(self, repository_id: str, project_id: str | None = None):
        self.repository_id = repository_id
        self.project_id = project_id
        message = f"Repository not found: {repository_id}"
        if project_id:
            message += f" (project {project_id})"
        super().__init__(message)


class DuplicateProjectKeyError(Exception):
    """Raised when a jira_project_key is already used by another project."""

    def __init__(self, jira_project_key: str):
        self.jira_project_key = jira_project_key
        super().__init__(
            f"Project with JIRA key '{jira_project_key}' already exists"
        )


class DevelopmentNotFoundError(Exception):
    """Raised when a development id does not resolve."""

    def __init__(self, development_id: str):
        self.development_id = development_id
        super().__init__(f"Development not found: {development_id}")


class WebhookEventNotFoundError(Exception):
    """Raised when a webhook event id does not resolve."""

    def __init__(self, event_id: str):
        self.event_id = event_id
        super().__init__(f"Webhook event not found: {event_id}")


class InvalidStatusTransitionError(Exception):
    """Raised when a development leaves a terminal status or skips one."""

    def __init__(self, development_id: str, current: str, requested: str):
        self.development_id = development_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"Development {development_id} cannot move from "
            f"'{current}' to '{requested}'"
        )


class WebhookAlreadyProcessedError(Exception):
    """Raised when processed_at would be set a second time."""

    def __init__(self, event_id: str):
        self.event_id = event_id
        super().__init__(f"Webhook event {event_id} is already processed")


class InvalidProcessedAtError(Exception):
    """Raised when processed_at would precede received_at."""

    def __init__(self, event_id: str, processed_at: datetime, received_at: datetime):
        self.event_id = event_id
        self.processed_at = processed_at
        self.received_at = received_at
        super().__init__(
            f"Webhook event {event_id}: processed_at {processed_at.isoformat()} "
            f"precedes received_at {received_at.isoformat()}"
        )


class BootstrapError(Exception):
    """Raised when schema bootstrap cannot complete. Always fatal."""

    def __init__(self, message: str, object_name: str | None = None):
        self.object_name = object_name
        if object_name:
            message = f"{message} [{object_name}]"
        super().__init__(message)
