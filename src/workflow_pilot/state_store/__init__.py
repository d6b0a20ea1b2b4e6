"""State Store - Persistent project phase, sprint and event history."""

from workflow_pilot.state_store.exceptions import (
    ProjectExistsError,
    ProjectNotFoundError,
    StaleStateError,
    StateStoreError,
)
from workflow_pilot.state_store.models import EventRecord, EventType, ProjectState
from workflow_pilot.state_store.store import StateStore

__all__ = [
    "EventRecord",
    "EventType",
    "ProjectExistsError",
    "ProjectNotFoundError",
    "ProjectState",
    "StaleStateError",
    "StateStore",
    "StateStoreError",
]
