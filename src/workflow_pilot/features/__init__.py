"""Features - Backlog model, dependency resolution and document I/O."""

from workflow_pilot.features.document import (
    DocumentShape,
    feature_list_from_dict,
    load_feature_list,
    save_feature_list,
)
from workflow_pilot.features.exceptions import (
    FeatureListError,
    FeatureListNotFoundError,
    InvalidFeatureListError,
)
from workflow_pilot.features.models import (
    AcceptanceCriterion,
    Feature,
    FeatureList,
    FeatureStatus,
    FeatureStep,
    ProjectInfo,
    Sprint,
    create_empty_feature_list,
    create_feature,
)
from workflow_pilot.features.resolver import (
    SprintProgress,
    all_features_verified,
    effective_status,
    get_parallelizable_features,
    get_ready_features,
    get_sprint_progress,
    unmet_dependencies,
)

__all__ = [
    "AcceptanceCriterion",
    "DocumentShape",
    "Feature",
    "FeatureList",
    "FeatureListError",
    "FeatureListNotFoundError",
    "FeatureStatus",
    "FeatureStep",
    "InvalidFeatureListError",
    "ProjectInfo",
    "Sprint",
    "SprintProgress",
    "all_features_verified",
    "create_empty_feature_list",
    "create_feature",
    "effective_status",
    "feature_list_from_dict",
    "get_parallelizable_features",
    "get_ready_features",
    "get_sprint_progress",
    "load_feature_list",
    "save_feature_list",
    "unmet_dependencies",
]
