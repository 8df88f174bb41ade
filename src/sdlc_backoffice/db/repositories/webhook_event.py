"""
Webhook event repository.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from sdlc_backoffice.db.repositories.base import BaseRepository
from sdlc_backoffice.exceptions import (
    InvalidProcessedAtError,
    WebhookAlreadyProcessedError,
    WebhookEventNotFoundError,
)
from sdlc_backoffice.models.db import WebhookEvent, ensure_utc, utc_now


class WebhookEventRepository(BaseRepository[WebhookEvent]):
    """Repository for WebhookEvent model. Events are append-only."""

    def __init__(self, session: Session):
        super().__init__(WebhookEvent, session)

    def list(
        self,
        jira_project_key: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[WebhookEvent]:
        """
        List webhook events, most recently received first.

        Args:
            jira_project_key: Only events for this tracker project
            limit: Maximum number of records to return
            offset: Number of records to skip

        Returns:
            List of webhook events
        """
        query = self.session.query(WebhookEvent)
        if jira_project_key:
            query = query.filter(WebhookEvent.jira_project_key == jira_project_key)

        query = query.order_by(WebhookEvent.received_at.desc()).offset(offset)
        if limit:
            query = query.limit(limit)
        return query.all()

    def record(self, received_at: Optional[datetime] = None, **kwargs) -> WebhookEvent:
        """
        Store a newly received tracker notification.

        Args:
            received_at: Receipt time (defaults to now); never changed afterwards
            **kwargs: Event field values, raw_payload stored verbatim

        Returns:
            Created webhook event
        """
        kwargs.pop("processed_at", None)
        return self.create(received_at=received_at or utc_now(), **kwargs)

    def mark_processed(
        self, id: uuid.UUID, processed_at: Optional[datetime] = None
    ) -> WebhookEvent:
        """
        Set processed_at on an event. Allowed once, never before receipt.

        Raises:
            WebhookEventNotFoundError: If the event does not exist
            WebhookAlreadyProcessedError: If processed_at is already set
            InvalidProcessedAtError: If processed_at precedes received_at
        """
        event = self.get(id)
        if event is None:
            raise WebhookEventNotFoundError(str(id))
        if event.processed_at is not None:
            raise WebhookAlreadyProcessedError(str(id))

        processed_at = ensure_utc(processed_at or utc_now())
        received_at = ensure_utc(event.received_at)
        if processed_at < received_at:
            raise InvalidProcessedAtError(str(id), processed_at, received_at)

        event.processed_at = processed_at
        self.session.flush()
        return event

    def delete_by_issue_key(self, jira_issue_key: str) -> int:
        """
        Delete every event for a tracker issue.

        Returns:
            Number of events deleted
        """
        deleted = (
            self.session.query(WebhookEvent)
            .filter(WebhookEvent.jira_issue_key == jira_issue_key)
            .delete(synchronize_session=False)
        )
        self.session.flush()
        return deleted
