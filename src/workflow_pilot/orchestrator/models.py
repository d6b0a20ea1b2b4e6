"""Models for the Orchestrator module."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from workflow_pilot.config import DEFAULT_AUTOPILOT_CONFIG, AutopilotConfig
from workflow_pilot.features import FeatureList, load_feature_list, save_feature_list

if TYPE_CHECKING:
    from workflow_pilot.github import GitHubClient

logger = logging.getLogger(__name__)


@dataclass
class AutopilotStatus:
    """Autopilot status for a project."""

    project_id: str
    phase: str
    current_sprint: int
    ready_features: int
    in_progress_features: int
    max_workers: int
    pr_strategy: str


@dataclass
class ProjectContext:
    """Handle to one project: its feature list, GitHub client and autopilot config.

    The loaded feature list is cached on the handle. Callers that need the
    on-disk state pass ``force_reload=True``.
    """

    project_id: str
    feature_list_path: Path
    client: GitHubClient
    config: AutopilotConfig = DEFAULT_AUTOPILOT_CONFIG
    _feature_list: FeatureList | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self.feature_list_path = Path(self.feature_list_path)

    def has_feature_list(self) -> bool:
        """Whether the feature list document exists."""
        return self._feature_list is not None or self.feature_list_path.exists()

    def feature_list(self, force_reload: bool = False) -> FeatureList:
        """The project's feature list, loaded on first use.

        Raises:
            FeatureListNotFoundError: If the document does not exist.
            InvalidFeatureListError: If the document is malformed.
        """
        if self._feature_list is None or force_reload:
            self._feature_list = load_feature_list(self.feature_list_path)
        return self._feature_list

    def save(self) -> None:
        """Persist the cached feature list."""
        if self._feature_list is None:
            return
        save_feature_list(self.feature_list_path, self._feature_list)
        logger.debug("Saved feature list for project %s", self.project_id)

    def close(self) -> None:
        """Release the GitHub client."""
        self.client.close()
