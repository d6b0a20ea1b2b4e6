"""Autopilot status and feature intake endpoints."""

from fastapi import APIRouter

from workflow_pilot.api.dependencies import OrchestratorDep, ProjectContextDep
from workflow_pilot.api.models import (
    APIResponse,
    AutopilotStatusResponse,
    IntakeRequest,
    LabelingResultResponse,
    autopilot_status_to_response,
    labeling_result_to_response,
)

router = APIRouter(prefix="/projects/{project_id}", tags=["control"])


@router.get("/status", response_model=APIResponse[AutopilotStatusResponse])
def get_autopilot_status(
    ctx: ProjectContextDep, orchestrator: OrchestratorDep
) -> APIResponse[AutopilotStatusResponse]:
    """Get autopilot status for a project."""
    status = orchestrator.get_autopilot_status(ctx)
    return APIResponse(data=autopilot_status_to_response(status))


@router.post("/intake", response_model=APIResponse[LabelingResultResponse])
def run_intake(
    request: IntakeRequest, ctx: ProjectContextDep, orchestrator: OrchestratorDep
) -> APIResponse[LabelingResultResponse]:
    """Dispatch ready features to workers, up to the worker limit."""
    result = orchestrator.intake(
        ctx, max_to_label=request.max_to_label, dry_run=request.dry_run
    )
    return APIResponse(data=labeling_result_to_response(result))
