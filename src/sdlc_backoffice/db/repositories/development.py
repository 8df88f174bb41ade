"""
Development repository.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from sdlc_backoffice.db.repositories.base import BaseRepository
from sdlc_backoffice.exceptions import (
    DevelopmentNotFoundError,
    InvalidStatusTransitionError,
)
from sdlc_backoffice.models.db import Development, DevelopmentStatus, utc_now


class DevelopmentRepository(BaseRepository[Development]):
    """Repository for Development model."""

    def __init__(self, session: Session):
        super().__init__(Development, session)

    def list(
        self,
        jira_project_key: Optional[str] = None,
        project_id: Optional[uuid.UUID] = None,
        status: Optional[DevelopmentStatus] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Development]:
        """
        List developments, newest first, with optional filters.

        Args:
            jira_project_key: Only developments for this tracker project
            project_id: Only developments for this project
            status: Only developments in this status
            limit: Maximum number of records to return
            offset: Number of records to skip

        Returns:
            List of developments
        """
        query = self.session.query(Development)
        if jira_project_key:
            query = query.filter(Development.jira_project_key == jira_project_key)
        if project_id:
            query = query.filter(Development.project_id == project_id)
        if status:
            query = query.filter(Development.status == status)

        query = query.order_by(Development.created_at.desc()).offset(offset)
        if limit:
            query = query.limit(limit)
        return query.all()

    def start(self, **kwargs) -> Development:
        """
        Record a development that has just started (status=ready).

        Args:
            **kwargs: Development field values; status and completion fields
                are owned by this repository and must not be passed

        Returns:
            Created development instance
        """
        return self.create(status=DevelopmentStatus.READY, completed_at=None, **kwargs)

    def complete(
        self,
        id: uuid.UUID,
        development_details: str,
        pr_mr_url: Optional[str] = None,
        completed_at: Optional[datetime] = None,
    ) -> Development:
        """
        Move a ready development to completed.

        Raises:
            DevelopmentNotFoundError: If the development does not exist
            InvalidStatusTransitionError: If it already reached a terminal status
        """
        development = self._get_ready(id, DevelopmentStatus.COMPLETED)
        development.status = DevelopmentStatus.COMPLETED
        development.development_details = development_details
        development.pr_mr_url = pr_mr_url
        development.completed_at = completed_at or utc_now()
        self.session.flush()
        return development

    def fail(
        self,
        id: uuid.UUID,
        error_message: str,
        completed_at: Optional[datetime] = None,
    ) -> Development:
        """
        Move a ready development to failed.

        Raises:
            DevelopmentNotFoundError: If the development does not exist
            InvalidStatusTransitionError: If it already reached a terminal status
        """
        development = self._get_ready(id, DevelopmentStatus.FAILED)
        development.status = DevelopmentStatus.FAILED
        development.error_message = error_message
        development.completed_at = completed_at or utc_now()
        self.session.flush()
        return development

    def delete_by_jira_project_key(self, jira_project_key: str) -> int:
        """
        Delete every development for a tracker project.

        Returns:
            Number of developments deleted
        """
        deleted = (
            self.session.query(Development)
            .filter(Development.jira_project_key == jira_project_key)
            .delete(synchronize_session=False)
        )
        self.session.flush()
        return deleted

    def _get_ready(
        self, id: uuid.UUID, requested: DevelopmentStatus
    ) -> Development:
        development = self.get(id)
        if development is None:
            raise DevelopmentNotFoundError(str(id))
        if development.status.is_terminal:
            raise InvalidStatusTransitionError(
                str(id), development.status.value, requested.value
            )
        return development
