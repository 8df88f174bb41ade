"""
Webhook event API routes.

Read-only endpoints for inbound tracker notifications.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from sdlc_backoffice.api.schemas import WebhookEventResponse
from sdlc_backoffice.db.connection import get_db
from sdlc_backoffice.db.repositories import WebhookEventRepository

router = APIRouter()


@router.get("", response_model=list[WebhookEventResponse])
def list_webhook_events(
    jira_project_key: Optional[str] = Query(None, description="Filter by tracker project"),
    session: Session = Depends(get_db),
) -> list[WebhookEventResponse]:
    """List webhook events, most recently received first."""
    events = WebhookEventRepository(session).list(jira_project_key=jira_project_key)
    return [WebhookEventResponse.model_validate(e) for e in events]


@router.get("/{event_id}", response_model=WebhookEventResponse)
def get_webhook_event(
    event_id: UUID,
    session: Session = Depends(get_db),
) -> WebhookEventResponse:
    """Get a single webhook event by id, raw payload included."""
    event = WebhookEventRepository(session).get(event_id)
    if event is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Webhook event not found: {event_id}",
        )
    return WebhookEventResponse.model_validate(event)
