"""FastAPI dependencies for dependency injection."""

from __future__ import annotations

from collections.abc import Generator  # noqa: TC003
from typing import Annotated

from fastapi import Depends

from workflow_pilot.config import DEFAULT_AUTOPILOT_CONFIG, AutopilotConfig
from workflow_pilot.orchestrator import Orchestrator, ProjectContext
from workflow_pilot.state_store import StateStore

# Global StateStore instance (initialized on app startup)
_state_store: StateStore | None = None


def init_state_store(db_path: str = "workflow_pilot.db") -> StateStore:
    """Initialize the global StateStore instance."""
    global _state_store  # noqa: PLW0603
    _state_store = StateStore(db_path)
    return _state_store


def close_state_store() -> None:
    """Close the global StateStore instance."""
    global _state_store  # noqa: PLW0603
    if _state_store is not None:
        _state_store.close()
        _state_store = None


def get_state_store() -> Generator[StateStore, None, None]:
    """Dependency that provides the StateStore instance."""
    if _state_store is None:
        raise RuntimeError("StateStore not initialized. Call init_state_store() first.")
    yield _state_store


StateStoreDep = Annotated[StateStore, Depends(get_state_store)]

# Global Orchestrator instance (initialized on app startup)
_orchestrator: Orchestrator | None = None


def init_orchestrator(orchestrator: Orchestrator) -> None:
    """Initialize the global Orchestrator instance."""
    global _orchestrator  # noqa: PLW0603
    _orchestrator = orchestrator


def close_orchestrator() -> None:
    """Close the global Orchestrator instance."""
    global _orchestrator  # noqa: PLW0603
    _orchestrator = None


def get_orchestrator() -> Generator[Orchestrator, None, None]:
    """Dependency that provides the Orchestrator instance."""
    if _orchestrator is None:
        raise RuntimeError("Orchestrator not initialized. Call init_orchestrator() first.")
    yield _orchestrator


OrchestratorDep = Annotated[Orchestrator, Depends(get_orchestrator)]

# Autopilot config shared by all projects served by this app
_autopilot_config: AutopilotConfig = DEFAULT_AUTOPILOT_CONFIG


def init_autopilot_config(config: AutopilotConfig) -> None:
    """Set the autopilot config used for every request."""
    global _autopilot_config  # noqa: PLW0603
    _autopilot_config = config


def get_autopilot_config() -> AutopilotConfig:
    """Dependency that provides the autopilot config."""
    return _autopilot_config


AutopilotConfigDep = Annotated[AutopilotConfig, Depends(get_autopilot_config)]


def get_project_context(
    project_id: str, orchestrator: OrchestratorDep, config: AutopilotConfigDep
) -> Generator[ProjectContext, None, None]:
    """Dependency that provides a ProjectContext for the path's project.

    The context's GitHub client is closed when the request finishes.
    """
    ctx = orchestrator.context_for(project_id, config)
    try:
        yield ctx
    finally:
        ctx.close()


ProjectContextDep = Annotated[ProjectContext, Depends(get_project_context)]
