"""Event history endpoints."""

from fastapi import APIRouter, Query

from workflow_pilot.api.dependencies import StateStoreDep
from workflow_pilot.api.models import APIResponse, EventResponse, event_to_response

router = APIRouter(prefix="/projects/{project_id}", tags=["events"])


@router.get("/events", response_model=APIResponse[list[EventResponse]])
def list_events(
    project_id: str,
    store: StateStoreDep,
    event_type: str | None = Query(default=None, description="Filter by event type"),
    limit: int = Query(default=100, ge=1, le=1000, description="Max results"),
) -> APIResponse[list[EventResponse]]:
    """List a project's events, most recent first."""
    events = store.list_events(project_id, event_type=event_type, limit=limit)
    return APIResponse(data=[event_to_response(e) for e in events])
