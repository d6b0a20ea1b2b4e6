"""Feature list document I/O.

The persisted document comes in two shapes: a flat ``features`` array, or
features nested under ``sprints[].features``. Both are resolved once, at load
time, into the canonical flat FeatureList, which remembers the shape so a
save writes the document back in the layout it was read from.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from workflow_pilot.features.exceptions import (
    FeatureListNotFoundError,
    InvalidFeatureListError,
)
from workflow_pilot.features.models import (
    DocumentShape,
    Feature,
    FeatureList,
    ProjectInfo,
    Sprint,
    utc_now_iso,
)

logger = logging.getLogger("workflow_pilot.features.document")

_KNOWN_DOCUMENT_KEYS = {"version", "project", "sprints", "features", "metadata"}


def detect_shape(data: dict[str, Any]) -> DocumentShape:
    """Classify a raw document as flat or sprinted."""
    if "features" in data:
        return DocumentShape.FLAT
    sprints = data.get("sprints") or []
    if any(isinstance(s, dict) and "features" in s for s in sprints):
        return DocumentShape.SPRINTED
    return DocumentShape.FLAT


def feature_list_from_dict(data: dict[str, Any]) -> FeatureList:
    """Build the canonical FeatureList from a raw document.

    Args:
        data: Parsed JSON document.

    Returns:
        FeatureList with a flat, ordered ``features`` list.

    Raises:
        InvalidFeatureListError: If required fields are missing or malformed.
    """
    try:
        shape = detect_shape(data)
        raw_sprints = data.get("sprints") or []

        if shape is DocumentShape.SPRINTED:
            features = []
            for raw_sprint in raw_sprints:
                for raw_feature in raw_sprint.get("features", []):
                    raw_feature = {"sprint": raw_sprint["number"], **raw_feature}
                    features.append(Feature.from_dict(raw_feature))
        else:
            features = [Feature.from_dict(f) for f in data.get("features", [])]

        return FeatureList(
            project=ProjectInfo.from_dict(data.get("project") or {}),
            features=features,
            sprints=[Sprint.from_dict(s) for s in raw_sprints],
            version=str(data.get("version", "1.0.0")),
            metadata=dict(data.get("metadata") or {}),
            shape=shape,
            extra={k: v for k, v in data.items() if k not in _KNOWN_DOCUMENT_KEYS},
        )
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidFeatureListError(f"Malformed feature list: {e}") from e


def load_feature_list(path: str | Path) -> FeatureList:
    """Read and normalize a feature list document.

    Raises:
        FeatureListNotFoundError: If the file does not exist.
        InvalidFeatureListError: If the file is not a valid document.
    """
    path = Path(path)
    if not path.exists():
        raise FeatureListNotFoundError(f"Feature list not found: {path}")

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise InvalidFeatureListError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise InvalidFeatureListError(f"Feature list {path} must be a JSON object")

    feature_list = feature_list_from_dict(data)
    logger.debug("Loaded %d feature(s) from %s", len(feature_list.features), path)
    return feature_list


def save_feature_list(path: str | Path, feature_list: FeatureList) -> None:
    """Write a feature list atomically.

    The document is written to a temporary file in the same directory and
    renamed over the target, so readers never see a partial write.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    feature_list.metadata["lastUpdated"] = utc_now_iso()
    content = json.dumps(feature_list.to_dict(), indent=2) + "\n"

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    logger.debug("Saved %d feature(s) to %s", len(feature_list.features), path)
