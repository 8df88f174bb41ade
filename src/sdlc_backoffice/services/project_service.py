"""
Project service for SDLC Backoffice.

Owns the business rules for projects and their repositories: tracker key
uniqueness, partial updates, repository id generation and scoping, and the
base branch default. Routes call this service; it never commits, the caller's
session scope does.
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from sdlc_backoffice.api.schemas import (
    ProjectCreate,
    ProjectUpdate,
    RepositoryCreate,
    RepositoryUpdate,
)
from sdlc_backoffice.db.repositories import ProjectRepository
from sdlc_backoffice.exceptions import (
    DuplicateProjectKeyError,
    ProjectNotFoundError,
    RepositoryNotFoundError,
)
from sdlc_backoffice.models.db import (
    DEFAULT_BASE_BRANCH,
    Project,
    Repository,
    new_repository_id,
    utc_now,
)

logger = logging.getLogger(__name__)


def _build_repository(data: RepositoryCreate) -> Repository:
    """Create a detached repository row with a fresh server-side id."""
    return Repository(
        repository_id=new_repository_id(),
        url=data.url,
        description=data.description,
        git_access_token=data.git_access_token,
        base_branch=data.base_branch or DEFAULT_BASE_BRANCH,
    )


class ProjectService:
    """Business operations on projects and their owned repositories."""

    def __init__(self, session: Session):
        self.session = session
        self.projects = ProjectRepository(session)

    # ===== Projects =====

    def list_projects(self) -> list[Project]:
        return self.projects.get_all()

    def get_project(self, project_id: uuid.UUID) -> Project:
        """
        Get a project by id.

        Raises:
            ProjectNotFoundError: If no project has this id
        """
        project = self.projects.get(project_id)
        if project is None:
            raise ProjectNotFoundError(str(project_id))
        return project

    def get_project_by_jira_key(self, jira_project_key: str) -> Project:
        """
        Get a project by tracker key.

        Raises:
            ProjectNotFoundError: If no project uses this key
        """
        project = self.projects.get_by_jira_key(jira_project_key)
        if project is None:
            raise ProjectNotFoundError(jira_project_key)
        return project

    def create_project(self, data: ProjectCreate) -> Project:
        """
        Create a project together with any repositories in the payload.

        The unique index on jira_project_key decides concurrent creates: the
        insert runs in a savepoint so a losing racer leaves the outer
        transaction usable.

        Args:
            data: Validated create payload

        Returns:
            The persisted project

        Raises:
            DuplicateProjectKeyError: If the tracker key is already in use
        """
        if self.projects.get_by_jira_key(data.jira_project_key) is not None:
            raise DuplicateProjectKeyError(data.jira_project_key)

        project = Project(**data.model_dump(exclude={"repositories"}))
        for repository in data.repositories:
            project.repositories.append(_build_repository(repository))
        try:
            with self.session.begin_nested():
                self.session.add(project)
        except IntegrityError as e:
            raise DuplicateProjectKeyError(data.jira_project_key) from e

        logger.info(
            f"Created project {project.id} ({project.jira_project_key}) "
            f"with {len(project.repositories)} repositories"
        )
        return project

    def update_project(self, project_id: uuid.UUID, data: ProjectUpdate) -> Project:
        """
        Apply a partial update. Fields absent from the payload are untouched.

        Raises:
            ProjectNotFoundError: If no project has this id
            DuplicateProjectKeyError: If the new tracker key belongs to another project
        """
        project = self.get_project(project_id)
        changes = data.model_dump(exclude_unset=True, exclude={"repositories"})

        new_key = changes.get("jira_project_key")
        if new_key is not None and new_key != project.jira_project_key:
            other = self.projects.get_by_jira_key(new_key)
            if other is not None and other.id != project.id:
                raise DuplicateProjectKeyError(new_key)

        # All writes stay inside the savepoint
        try:
            with self.session.begin_nested():
                for field, value in changes.items():
                    setattr(project, field, value)

                if data.repositories is not None:
                    project.repositories.clear()
                    self.session.flush()
                    for repository in data.repositories:
                        project.repositories.append(_build_repository(repository))

                project.updated_at = utc_now()
        except IntegrityError as e:
            raise DuplicateProjectKeyError(new_key or project.jira_project_key) from e

        logger.info(f"Updated project {project.id}: {sorted(data.model_fields_set)}")
        return project

    def delete_project(self, project_id: uuid.UUID) -> None:
        """
        Hard-delete a project and, by cascade, its repositories.

        Raises:
            ProjectNotFoundError: If no project has this id
        """
        project = self.get_project(project_id)
        self.session.delete(project)
        self.session.flush()
        logger.info(f"Deleted project {project_id}")

    # ===== Repositories =====

    def list_repositories(self, project_id: uuid.UUID) -> list[Repository]:
        return list(self.get_project(project_id).repositories)

    def get_repository(
        self, project_id: uuid.UUID, repository_id: str
    ) -> Repository:
        """
        Get a repository within a project.

        Raises:
            ProjectNotFoundError: If the project does not exist
            RepositoryNotFoundError: If the repository is not in this project
        """
        self.get_project(project_id)
        repository = self.projects.get_repository(project_id, repository_id)
        if repository is None:
            raise RepositoryNotFoundError(repository_id, str(project_id))
        return repository

    def add_repository(
        self, project_id: uuid.UUID, data: RepositoryCreate
    ) -> Repository:
        """
        Append a repository to a project.

        Returns:
            The new repository, with its generated repository_id

        Raises:
            ProjectNotFoundError: If the project does not exist
        """
        project = self.get_project(project_id)
        repository = _build_repository(data)
        project.repositories.append(repository)
        project.updated_at = utc_now()
        self.session.flush()
        logger.info(
            f"Added repository {repository.repository_id} to project {project_id}"
        )
        return repository

    def update_repository(
        self,
        project_id: uuid.UUID,
        repository_id: str,
        data: RepositoryUpdate,
    ) -> Repository:
        """
        Partially update a repository, scoped by its owning project.

        Raises:
            ProjectNotFoundError: If the project does not exist
            RepositoryNotFoundError: If the repository is not in this project
        """
        repository = self.get_repository(project_id, repository_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(repository, field, value)
        repository.project.updated_at = utc_now()
        self.session.flush()
        logger.info(f"Updated repository {repository_id} in project {project_id}")
        return repository

    def delete_repository(
        self, project_id: uuid.UUID, repository_id: str
    ) -> None:
        """
        Remove a repository from its project.

        Raises:
            ProjectNotFoundError: If the project does not exist
            RepositoryNotFoundError: If the repository is not in this project
        """
        repository = self.get_repository(project_id, repository_id)
        project = repository.project
        project.repositories.remove(repository)
        project.updated_at = utc_now()
        self.session.flush()
        logger.info(f"Deleted repository {repository_id} from project {project_id}")
