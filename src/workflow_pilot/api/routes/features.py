"""Feature list endpoints."""

from fastapi import APIRouter, Query

from workflow_pilot.api.dependencies import ProjectContextDep
from workflow_pilot.api.models import APIResponse, FeatureResponse, feature_to_response
from workflow_pilot.orchestrator import NoFeatureListError

router = APIRouter(prefix="/projects/{project_id}", tags=["features"])


@router.get("/features", response_model=APIResponse[list[FeatureResponse]])
def list_features(
    ctx: ProjectContextDep,
    sprint: int | None = Query(default=None, ge=1, description="Filter by sprint"),
) -> APIResponse[list[FeatureResponse]]:
    """List features in document order, with their effective status."""
    if not ctx.has_feature_list():
        raise NoFeatureListError(f"Project '{ctx.project_id}' has no feature list")

    features = ctx.feature_list().features
    return APIResponse(
        data=[
            feature_to_response(f, features)
            for f in features
            if sprint is None or f.sprint == sprint
        ]
    )
