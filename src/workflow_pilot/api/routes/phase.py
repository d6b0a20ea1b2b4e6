"""Project phase endpoints."""

from fastapi import APIRouter

from workflow_pilot.api.dependencies import StateStoreDep
from workflow_pilot.api.models import APIResponse, PhaseResponse, PhaseTransitionRequest
from workflow_pilot.phases import PHASES, get_phase_progress
from workflow_pilot.state_store import ProjectState

router = APIRouter(prefix="/projects/{project_id}", tags=["phase"])


def _phase_response(project: ProjectState) -> PhaseResponse:
    phase = project.development_phase
    info = PHASES[phase]
    return PhaseResponse(
        phase=phase.value,
        description=info.description,
        progress=get_phase_progress(phase),
        next_phases=[p.value for p in info.next_phases],
        is_terminal=info.is_terminal,
        version=project.version,
    )


@router.get("/phase", response_model=APIResponse[PhaseResponse])
def get_phase(project_id: str, store: StateStoreDep) -> APIResponse[PhaseResponse]:
    """Get a project's current phase and where it can go next."""
    return APIResponse(data=_phase_response(store.get_project(project_id)))


@router.post("/phase", response_model=APIResponse[PhaseResponse])
def transition_phase(
    project_id: str, request: PhaseTransitionRequest, store: StateStoreDep
) -> APIResponse[PhaseResponse]:
    """Move a project to another phase.

    Illegal transitions and stale versions are rejected with 409.
    """
    project = store.transition_phase(
        project_id, request.target, expected_version=request.expected_version
    )
    return APIResponse(data=_phase_response(project))
