"""Orchestrator - Intake and promotion cadences over the core components."""

from workflow_pilot.orchestrator.exceptions import NoFeatureListError, OrchestratorError
from workflow_pilot.orchestrator.models import AutopilotStatus, ProjectContext
from workflow_pilot.orchestrator.orchestrator import Orchestrator

__all__ = [
    "AutopilotStatus",
    "NoFeatureListError",
    "Orchestrator",
    "OrchestratorError",
    "ProjectContext",
]
