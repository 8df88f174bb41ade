"""
Project repository.
"""

import uuid
from typing import List, Optional

from sqlalchemy.orm import Session

from sdlc_backoffice.db.repositories.base import BaseRepository
from sdlc_backoffice.models.db import Project, Repository


class ProjectRepository(BaseRepository[Project]):
    """Repository for Project model and its owned repositories."""

    def __init__(self, session: Session):
        super().__init__(Project, session)

    def get_all(self, limit: Optional[int] = None, offset: int = 0) -> List[Project]:
        """
        Get all projects, newest first.

        Args:
            limit: Maximum number of records to return
            offset: Number of records to skip

        Returns:
            List of projects with repositories loaded
        """
        query = (
            self.session.query(Project)
            .order_by(Project.created_at.desc())
            .offset(offset)
        )
        if limit:
            query = query.limit(limit)
        return query.all()

    def get_by_jira_key(self, jira_project_key: str) -> Optional[Project]:
        """
        Get project by tracker project key.

        Args:
            jira_project_key: Tracker project key (e.g., "ECOM")

        Returns:
            Project instance or None
        """
        return (
            self.session.query(Project)
            .filter(Project.jira_project_key == jira_project_key)
            .first()
        )

    def delete_by_jira_key(self, jira_project_key: str) -> int:
        """
        Delete the project with the given tracker key, with its repositories.

        Args:
            jira_project_key: Tracker project key

        Returns:
            Number of projects deleted (0 or 1)
        """
        project = self.get_by_jira_key(jira_project_key)
        if project is None:
            return 0
        self.session.delete(project)
        self.session.flush()
        return 1

    def get_repository(
        self, project_id: uuid.UUID, repository_id: str
    ) -> Optional[Repository]:
        """
        Get a repository scoped to its owning project.

        Args:
            project_id: Owning project UUID
            repository_id: Repository identifier

        Returns:
            Repository instance or None if absent or owned by another project
        """
        return (
            self.session.query(Repository)
            .filter(
                Repository.repository_id == repository_id,
                Repository.project_id == project_id,
            )
            .first()
        )
