"""
Development API routes.

Read-only endpoints for development records produced by the automation.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from sdlc_backoffice.api.schemas import DevelopmentResponse
from sdlc_backoffice.db.connection import get_db
from sdlc_backoffice.db.repositories import DevelopmentRepository
from sdlc_backoffice.models.db import DevelopmentStatus

router = APIRouter()


@router.get("", response_model=list[DevelopmentResponse])
def list_developments(
    jira_project_key: Optional[str] = Query(None, description="Filter by tracker project"),
    project_id: Optional[UUID] = Query(None, description="Filter by project id"),
    status_filter: Optional[DevelopmentStatus] = Query(
        None, alias="status", description="Filter by status"
    ),
    session: Session = Depends(get_db),
) -> list[DevelopmentResponse]:
    """List developments, newest first."""
    developments = DevelopmentRepository(session).list(
        jira_project_key=jira_project_key,
        project_id=project_id,
        status=status_filter,
    )
    return [DevelopmentResponse.model_validate(d) for d in developments]


@router.get("/{development_id}", response_model=DevelopmentResponse)
def get_development(
    development_id: UUID,
    session: Session = Depends(get_db),
) -> DevelopmentResponse:
    """Get a single development by id."""
    development = DevelopmentRepository(session).get(development_id)
    if development is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Development not found: {development_id}",
        )
    return DevelopmentResponse.model_validate(development)
