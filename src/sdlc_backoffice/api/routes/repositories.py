"""
Repository API routes.

Update and delete a single repository. The owning project id is a required
query parameter so a repository can only be changed through its project.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from sdlc_backoffice.api.schemas import MessageResponse, RepositoryUpdate
from sdlc_backoffice.db.connection import get_db
from sdlc_backoffice.exceptions import ProjectNotFoundError, RepositoryNotFoundError
from sdlc_backoffice.services.project_service import ProjectService

router = APIRouter()


@router.put("/{repository_id}", response_model=MessageResponse)
def update_repository(
    repository_id: str,
    payload: RepositoryUpdate,
    project_id: UUID = Query(..., description="Owning project id"),
    session: Session = Depends(get_db),
) -> MessageResponse:
    """Partially update a repository within its project."""
    try:
        ProjectService(session).update_repository(project_id, repository_id, payload)
        session.commit()
    except (ProjectNotFoundError, RepositoryNotFoundError) as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return MessageResponse(message="Repository updated successfully")


@router.delete("/{repository_id}", response_model=MessageResponse)
def delete_repository(
    repository_id: str,
    project_id: UUID = Query(..., description="Owning project id"),
    session: Session = Depends(get_db),
) -> MessageResponse:
    """Remove a repository from its project."""
    try:
        ProjectService(session).delete_repository(project_id, repository_id)
        session.commit()
    except (ProjectNotFoundError, RepositoryNotFoundError) as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return MessageResponse(message="Repository deleted successfully")
