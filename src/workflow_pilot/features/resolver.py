"""Status resolver - effective feature status over the dependency graph."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from workflow_pilot.features.models import STARTED_STATUSES, FeatureStatus

if TYPE_CHECKING:
    from collections.abc import Sequence

    from workflow_pilot.features.models import Feature, FeatureList

logger = logging.getLogger("workflow_pilot.features")


@dataclass
class SprintProgress:
    """Progress counters for one sprint."""

    total: int
    completed: int
    verified: int
    percentage: int


def unmet_dependencies(feature: Feature, all_features: Sequence[Feature]) -> list[str]:
    """Return the dependency ids that block a feature.

    A dependency blocks when it is a blocking feature that has not passed
    verification. An id that matches no feature also blocks.

    Args:
        feature: The feature to inspect.
        all_features: Every feature in the list.

    Returns:
        Blocking dependency ids, in ``depends_on`` order.
    """
    by_id = {f.id: f for f in all_features}
    unmet = []
    for dep_id in feature.depends_on:
        dep = by_id.get(dep_id)
        if dep is None:
            logger.warning(
                "Feature %s depends on unknown feature %s, treating as unsatisfied",
                feature.id,
                dep_id,
            )
            unmet.append(dep_id)
        elif dep.blocking and not dep.passes:
            unmet.append(dep_id)
    return unmet


def effective_status(feature: Feature, all_features: Sequence[Feature]) -> FeatureStatus | str:
    """Compute a feature's runtime status from its record and its dependencies.

    Started features (in progress, implemented, verified) keep their status.
    Otherwise the feature is BLOCKED if any dependency is unmet. A planned
    feature with no unmet dependency is READY, and so is one whose recorded
    BLOCKED status is stale.

    Args:
        feature: The feature to resolve.
        all_features: Every feature in the list.

    Returns:
        The effective status.
    """
    if feature.status in STARTED_STATUSES:
        return feature.status

    if unmet_dependencies(feature, all_features):
        return FeatureStatus.BLOCKED

    if feature.status in (FeatureStatus.PLANNED, FeatureStatus.BLOCKED):
        return FeatureStatus.READY

    return feature.status


def get_ready_features(feature_list: FeatureList) -> list[Feature]:
    """Features whose effective status is READY, in list order."""
    return [
        f
        for f in feature_list.features
        if effective_status(f, feature_list.features) == FeatureStatus.READY
    ]


def get_parallelizable_features(feature_list: FeatureList, sprint: int) -> list[Feature]:
    """Non-blocking READY features of one sprint, which can be worked on in parallel."""
    return [
        f
        for f in feature_list.features
        if f.sprint == sprint
        and not f.blocking
        and effective_status(f, feature_list.features) == FeatureStatus.READY
    ]


def get_sprint_progress(feature_list: FeatureList, sprint: int) -> SprintProgress:
    """Count implemented and verified features of a sprint."""
    sprint_features = [f for f in feature_list.features if f.sprint == sprint]
    total = len(sprint_features)
    completed = sum(
        1
        for f in sprint_features
        if f.status in (FeatureStatus.IMPLEMENTED, FeatureStatus.VERIFIED)
    )
    verified = sum(1 for f in sprint_features if f.status == FeatureStatus.VERIFIED)
    return SprintProgress(
        total=total,
        completed=completed,
        verified=verified,
        percentage=round(verified / total * 100) if total else 0,
    )


def all_features_verified(feature_list: FeatureList) -> bool:
    """True when every feature has passed verification."""
    return bool(feature_list.features) and all(f.passes for f in feature_list.features)
