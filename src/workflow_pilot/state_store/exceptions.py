"""Custom exceptions for the State Store."""


class StateStoreError(Exception):
    """Base exception for State Store errors."""


class ProjectNotFoundError(StateStoreError):
    """Project with given ID does not exist."""


class ProjectExistsError(StateStoreError):
    """Project with given repo already exists."""


class StaleStateError(StateStoreError):
    """The project changed since it was read; the write was rejected."""

    def __init__(self, project_id: str, expected_version: int, actual_version: int) -> None:
        self.project_id = project_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Project '{project_id}' is at version {actual_version}, "
            f"expected {expected_version}"
        )
