"""Project endpoints."""

from fastapi import APIRouter, status

from workflow_pilot.api.dependencies import StateStoreDep
from workflow_pilot.api.models import (
    APIResponse,
    ProjectCreate,
    ProjectResponse,
    project_to_response,
)

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("", response_model=APIResponse[list[ProjectResponse]])
def list_projects(store: StateStoreDep) -> APIResponse[list[ProjectResponse]]:
    """List all projects."""
    return APIResponse(data=[project_to_response(p) for p in store.list_projects()])


@router.post(
    "",
    response_model=APIResponse[ProjectResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_project(project: ProjectCreate, store: StateStoreDep) -> APIResponse[ProjectResponse]:
    """Create a new project."""
    created = store.create_project(
        name=project.name,
        repo=project.repo,
        feature_list_path=project.feature_list_path,
        phase=project.phase,
    )
    return APIResponse(data=project_to_response(created))


@router.get("/{project_id}", response_model=APIResponse[ProjectResponse])
def get_project(project_id: str, store: StateStoreDep) -> APIResponse[ProjectResponse]:
    """Get a project by ID."""
    return APIResponse(data=project_to_response(store.get_project(project_id)))


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(project_id: str, store: StateStoreDep) -> None:
    """Delete a project and its event history."""
    store.delete_project(project_id)
