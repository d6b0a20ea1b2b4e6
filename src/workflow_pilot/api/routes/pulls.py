"""Pull request gating and promotion endpoints."""

from fastapi import APIRouter

from workflow_pilot.api.dependencies import OrchestratorDep, ProjectContextDep
from workflow_pilot.api.models import (
    APIResponse,
    AutoMergeResultResponse,
    PRStatusResponse,
    ProcessPullsRequest,
    auto_merge_result_to_response,
    pr_status_to_response,
)
from workflow_pilot.merge import AutoMergeOptions

router = APIRouter(prefix="/projects/{project_id}/pulls", tags=["pulls"])


@router.get("/{pr_number}/status", response_model=APIResponse[PRStatusResponse])
def get_pr_status(
    pr_number: int, ctx: ProjectContextDep, orchestrator: OrchestratorDep
) -> APIResponse[PRStatusResponse]:
    """Get the CI gate status of a pull request."""
    status = orchestrator.check_pr(ctx, pr_number)
    return APIResponse(data=pr_status_to_response(status))


@router.post("/process", response_model=APIResponse[list[AutoMergeResultResponse]])
def process_pulls(
    request: ProcessPullsRequest, ctx: ProjectContextDep, orchestrator: OrchestratorDep
) -> APIResponse[list[AutoMergeResultResponse]]:
    """Apply the configured PR strategy to each pull request, in order."""
    options = AutoMergeOptions(
        merge_method=request.merge_method,
        delete_branch=request.delete_branch,
        dry_run=request.dry_run,
    )
    results = orchestrator.promote(ctx, request.pr_numbers, options)
    return APIResponse(data=[auto_merge_result_to_response(r) for r in results.values()])
