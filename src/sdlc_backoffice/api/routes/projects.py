"""
Project API routes.

CRUD endpoints for projects and the repositories they own.
"""

import logging
from typing import Optional, Union
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from sdlc_backoffice.api.schemas import (
    MessageResponse,
    ProjectCreate,
    ProjectResponse,
    ProjectUpdate,
    RepositoryCreate,
    RepositoryCreatedResponse,
    RepositoryResponse,
)
from sdlc_backoffice.db.connection import get_db
from sdlc_backoffice.exceptions import DuplicateProjectKeyError, ProjectNotFoundError
from sdlc_backoffice.services.project_service import ProjectService

logger = logging.getLogger(__name__)

router = APIRouter()


def _not_found(e: ProjectNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def _conflict(e: DuplicateProjectKeyError) -> HTTPException:
    logger.warning(f"Rejected duplicate project key: {e.jira_project_key}")
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.get("", response_model=Union[list[ProjectResponse], ProjectResponse])
def list_projects(
    jira_project_key: Optional[str] = Query(
        None, description="Return the single project with this tracker key"
    ),
    session: Session = Depends(get_db),
) -> Union[list[ProjectResponse], ProjectResponse]:
    """
    List all projects with their repositories, newest first.

    With ?jira_project_key=K, returns that one project instead (404 if absent).
    """
    service = ProjectService(session)

    if jira_project_key is not None:
        try:
            project = service.get_project_by_jira_key(jira_project_key)
        except ProjectNotFoundError as e:
            raise _not_found(e)
        return ProjectResponse.model_validate(project)

    return [ProjectResponse.model_validate(p) for p in service.list_projects()]


@router.get("/{project_id}", response_model=ProjectResponse)
def get_project(
    project_id: UUID,
    session: Session = Depends(get_db),
) -> ProjectResponse:
    """Get a single project by id."""
    try:
        project = ProjectService(session).get_project(project_id)
    except ProjectNotFoundError as e:
        raise _not_found(e)
    return ProjectResponse.model_validate(project)


@router.post(
    "", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED
)
def create_project(
    payload: ProjectCreate,
    session: Session = Depends(get_db),
) -> ProjectResponse:
    """
    Create a project.

    Repositories in the body are stored with fresh server-generated ids.
    Returns 409 if another project already uses the tracker key.
    """
    try:
        project = ProjectService(session).create_project(payload)
        session.commit()
    except DuplicateProjectKeyError as e:
        raise _conflict(e)
    return ProjectResponse.model_validate(project)


@router.put("/{project_id}", response_model=MessageResponse)
def update_project(
    project_id: UUID,
    payload: ProjectUpdate,
    session: Session = Depends(get_db),
) -> MessageResponse:
    """Partially update a project. Omitted fields are left unchanged."""
    try:
        ProjectService(session).update_project(project_id, payload)
        session.commit()
    except ProjectNotFoundError as e:
        raise _not_found(e)
    except DuplicateProjectKeyError as e:
        raise _conflict(e)
    return MessageResponse(message="Project updated successfully")


@router.delete("/{project_id}", response_model=MessageResponse)
def delete_project(
    project_id: UUID,
    session: Session = Depends(get_db),
) -> MessageResponse:
    """Delete a project and all of its repositories."""
    try:
        ProjectService(session).delete_project(project_id)
        session.commit()
    except ProjectNotFoundError as e:
        raise _not_found(e)
    return MessageResponse(message="Project deleted successfully")


@router.get("/{project_id}/repositories", response_model=list[RepositoryResponse])
def list_repositories(
    project_id: UUID,
    session: Session = Depends(get_db),
) -> list[RepositoryResponse]:
    """List the repositories owned by a project."""
    try:
        repositories = ProjectService(session).list_repositories(project_id)
    except ProjectNotFoundError as e:
        raise _not_found(e)
    return [RepositoryResponse.model_validate(r) for r in repositories]


@router.post(
    "/{project_id}/repositories",
    response_model=RepositoryCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_repository(
    project_id: UUID,
    payload: RepositoryCreate,
    session: Session = Depends(get_db),
) -> RepositoryCreatedResponse:
    """Add a repository to a project. base_branch defaults to main."""
    try:
        repository = ProjectService(session).add_repository(project_id, payload)
        repository_id = repository.repository_id
        session.commit()
    except ProjectNotFoundError as e:
        raise _not_found(e)
    return RepositoryCreatedResponse(
        message="Repository added successfully", repository_id=repository_id
    )
