"""FastAPI application setup."""

from __future__ import annotations

import json
import logging
import os
import subprocess
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from workflow_pilot.api.dependencies import (
    close_orchestrator,
    close_state_store,
    init_autopilot_config,
    init_orchestrator,
    init_state_store,
)
from workflow_pilot.api.models import APIResponse
from workflow_pilot.api.routes import control, events, features, phase, projects, pulls
from workflow_pilot.config import (
    DEFAULT_AUTOPILOT_CONFIG,
    AutopilotConfig,
    ConfigError,
    load_autopilot_config,
)
from workflow_pilot.features import FeatureListError
from workflow_pilot.github import GitHubClient
from workflow_pilot.logging import setup_logging
from workflow_pilot.orchestrator import NoFeatureListError, Orchestrator
from workflow_pilot.phases import InvalidPhaseTransitionError
from workflow_pilot.state_store import (
    ProjectExistsError,
    ProjectNotFoundError,
    StaleStateError,
    StateStoreError,
)

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = logging.getLogger(__name__)


def _get_github_token() -> str:
    """Get GitHub token from environment or gh CLI."""
    token = os.environ.get("GITHUB_TOKEN")
    if token:
        return token
    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout.strip()
    except (subprocess.CalledProcessError, FileNotFoundError):
        return ""


def _load_config(config_path: str | None) -> AutopilotConfig:
    """Read the autopilot section of a JSON config document."""
    if config_path is None:
        return DEFAULT_AUTOPILOT_CONFIG
    try:
        document = json.loads(Path(config_path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot read config {config_path}: {e}") from e
    return load_autopilot_config(document)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    setup_logging(log_dir=app.state.log_dir)
    store = init_state_store(app.state.db_path)
    init_autopilot_config(_load_config(app.state.config_path))

    token = _get_github_token()
    if not token:
        logger.warning("No GitHub token configured; provider calls will fail")
    init_orchestrator(
        Orchestrator(
            state_store=store,
            client_factory=lambda repo: GitHubClient(repo=repo, token=token),
        )
    )

    yield

    close_orchestrator()
    close_state_store()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=APIResponse[None](data=None, error=message).model_dump(),
    )


def create_app(
    db_path: str = "workflow_pilot.db",
    config_path: str | None = None,
    log_dir: str | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        db_path: SQLite database for orchestrator state.
        config_path: Optional JSON document holding an ``autopilot`` section.
        log_dir: Log directory, defaults to WORKFLOW_PILOT_LOG_DIR or 'logs'.
    """
    app = FastAPI(
        title="Workflow Pilot API",
        description="REST API for feature orchestration and release gating",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Read by the lifespan manager
    app.state.db_path = db_path
    app.state.config_path = config_path
    app.state.log_dir = log_dir

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ProjectNotFoundError)
    async def project_not_found_handler(
        _request: Request, _exc: ProjectNotFoundError
    ) -> JSONResponse:
        return _error(status.HTTP_404_NOT_FOUND, "Project not found")

    @app.exception_handler(ProjectExistsError)
    async def project_exists_handler(_request: Request, _exc: ProjectExistsError) -> JSONResponse:
        return _error(status.HTTP_409_CONFLICT, "Project with this repo already exists")

    @app.exception_handler(NoFeatureListError)
    async def no_feature_list_handler(_request: Request, _exc: NoFeatureListError) -> JSONResponse:
        return _error(status.HTTP_404_NOT_FOUND, "Feature list not found")

    @app.exception_handler(FeatureListError)
    async def feature_list_error_handler(_request: Request, exc: FeatureListError) -> JSONResponse:
        return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc))

    @app.exception_handler(InvalidPhaseTransitionError)
    async def invalid_transition_handler(
        _request: Request, exc: InvalidPhaseTransitionError
    ) -> JSONResponse:
        return _error(status.HTTP_409_CONFLICT, str(exc))

    @app.exception_handler(StaleStateError)
    async def stale_state_handler(_request: Request, exc: StaleStateError) -> JSONResponse:
        return _error(status.HTTP_409_CONFLICT, str(exc))

    @app.exception_handler(StateStoreError)
    async def state_store_error_handler(_request: Request, _exc: StateStoreError) -> JSONResponse:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")

    app.include_router(projects.router, prefix="/api/v1")
    app.include_router(features.router, prefix="/api/v1")
    app.include_router(control.router, prefix="/api/v1")
    app.include_router(pulls.router, prefix="/api/v1")
    app.include_router(phase.router, prefix="/api/v1")
    app.include_router(events.router, prefix="/api/v1")

    return app


# Default app instance
app = create_app()
