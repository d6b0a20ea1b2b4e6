"""REST API for workflow-pilot."""

from workflow_pilot.api.app import app, create_app
from workflow_pilot.api.models import APIResponse, ProjectCreate, ProjectResponse

__all__ = [
    "APIResponse",
    "ProjectCreate",
    "ProjectResponse",
    "app",
    "create_app",
]
