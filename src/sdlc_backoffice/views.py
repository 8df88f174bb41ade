"""
Presentation controllers for the backoffice.

One controller per entity. Each keeps the last successfully loaded state,
reloads its list in full after every mutation, and reports outcomes through
an injected Notifier. Client failures never escape a controller: they become
error notifications and the previously loaded state is kept, except that a
detail view whose entity is gone (404) drops its selection.
"""

import logging
from typing import Any, Callable, Optional, TypeVar

from sdlc_backoffice.api.schemas import (
    DevelopmentResponse,
    ProjectResponse,
    RepositoryResponse,
    WebhookEventResponse,
)
from sdlc_backoffice.client import (
    ApiError,
    BackofficeClient,
    NotFoundError,
    ValidationError,
)
from sdlc_backoffice.notifications import Notifier

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _Controller:
    """Shared error handling for controllers."""

    def __init__(self, client: BackofficeClient, notifier: Notifier):
        self.client = client
        self.notifier = notifier
        self.field_errors: dict[str, str] = {}
        self.last_error: Optional[ApiError] = None

    def _call(self, action: str, func: Callable[..., T], *args: Any) -> Optional[T]:
        """Run a client call; on failure notify and return None."""
        self.field_errors = {}
        self.last_error = None
        try:
            return func(*args)
        except ValidationError as e:
            self.last_error = e
            self.field_errors = e.field_errors
            for field, message in e.field_errors.items():
                self.notifier.error(f"{field}: {message}")
        except ApiError as e:
            self.last_error = e
            logger.info(f"{action} failed: {e.message}")
            self.notifier.error(f"Failed to {action}: {e.message}")
        return None

    def _load_list(
        self, what: str, func: Callable[..., list[T]], *args: Any
    ) -> Optional[list[T]]:
        items = self._call(f"load {what}", func, *args)
        if items is not None and not items:
            self.notifier.info(f"No {what} found")
        return items

    def _load_selected(self, action: str, func: Callable[..., T], *args: Any) -> bool:
        """Load one entity into `selected`; a 404 clears the selection."""
        item = self._call(action, func, *args)
        if item is None:
            if isinstance(self.last_error, NotFoundError):
                self.selected = None
            return False
        self.selected = item
        return True


class ProjectsController(_Controller):
    """List, detail and form state for projects."""

    def __init__(self, client: BackofficeClient, notifier: Notifier):
        super().__init__(client, notifier)
        self.projects: list[ProjectResponse] = []
        self.selected: Optional[ProjectResponse] = None

    def load(self) -> bool:
        projects = self._load_list("projects", self.client.list_projects)
        if projects is None:
            return False
        self.projects = projects
        return True

    def load_project(self, project_id: str) -> bool:
        return self._load_selected("load project", self.client.get_project, project_id)

    def find_by_jira_key(self, jira_project_key: str) -> bool:
        return self._load_selected(
            "find project", self.client.find_project_by_jira_key, jira_project_key
        )

    def create(self, data: dict[str, Any]) -> Optional[ProjectResponse]:
        project = self._call("create project", self.client.create_project, data)
        if project is not None:
            self.notifier.success(f"Project {project.jira_project_key} created")
            self.selected = project
            self.load()
        return project

    def update(self, project_id: str, data: dict[str, Any]) -> bool:
        result = self._call(
            "update project", self.client.update_project, project_id, data
        )
        if result is None:
            return False
        self.notifier.success(result.message)
        self.load()
        return True

    def delete(self, project_id: str) -> bool:
        result = self._call("delete project", self.client.delete_project, project_id)
        if result is None:
            return False
        self.notifier.success(result.message)
        if self.selected is not None and str(self.selected.id) == str(project_id):
            self.selected = None
        self.load()
        return True


class RepositoriesController(_Controller):
    """Repositories of a single project."""

    def __init__(self, client: BackofficeClient, notifier: Notifier, project_id: str):
        super().__init__(client, notifier)
        self.project_id = project_id
        self.repositories: list[RepositoryResponse] = []

    def load(self) -> bool:
        repositories = self._load_list(
            "repositories", self.client.list_repositories, self.project_id
        )
        if repositories is None:
            return False
        self.repositories = repositories
        return True

    def add(self, data: dict[str, Any]) -> Optional[str]:
        result = self._call(
            "add repository", self.client.add_repository, self.project_id, data
        )
        if result is None:
            return None
        self.notifier.success(result.message)
        self.load()
        return result.repository_id

    def update(self, repository_id: str, data: dict[str, Any]) -> bool:
        result = self._call(
            "update repository",
            self.client.update_repository,
            self.project_id,
            repository_id,
            data,
        )
        if result is None:
            return False
        self.notifier.success(result.message)
        self.load()
        return True

    def delete(self, repository_id: str) -> bool:
        result = self._call(
            "delete repository",
            self.client.delete_repository,
            self.project_id,
            repository_id,
        )
        if result is None:
            return False
        self.notifier.success(result.message)
        self.load()
        return True


class DevelopmentsController(_Controller):
    """Read-only list and detail state for developments."""

    def __init__(self, client: BackofficeClient, notifier: Notifier):
        super().__init__(client, notifier)
        self.developments: list[DevelopmentResponse] = []
        self.selected: Optional[DevelopmentResponse] = None

    def load(
        self,
        jira_project_key: Optional[str] = None,
        project_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> bool:
        developments = self._load_list(
            "developments",
            self.client.list_developments,
            jira_project_key,
            project_id,
            status,
        )
        if developments is None:
            return False
        self.developments = developments
        return True

    def load_development(self, development_id: str) -> bool:
        return self._load_selected(
            "load development", self.client.get_development, development_id
        )


class WebhookEventsController(_Controller):
    """Read-only list and detail state for webhook events."""

    def __init__(self, client: BackofficeClient, notifier: Notifier):
        super().__init__(client, notifier)
        self.events: list[WebhookEventResponse] = []
        self.selected: Optional[WebhookEventResponse] = None

    def load(self, jira_project_key: Optional[str] = None) -> bool:
        events = self._load_list(
            "webhook events", self.client.list_webhook_events, jira_project_key
        )
        if events is None:
            return False
        self.events = events
        return True

    def load_event(self, event_id: str) -> bool:
        return self._load_selected(
            "load webhook event", self.client.get_webhook_event, event_id
        )
