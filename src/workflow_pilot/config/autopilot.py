"""Autopilot configuration - policy for workers and PR promotion."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from workflow_pilot.config.exceptions import ConfigValidationError

logger = logging.getLogger("workflow_pilot.config")

DEFAULT_TIMEOUT_SECONDS = 30 * 60
MIN_WORKERS = 1
MAX_WORKERS = 10

_TIMEOUT_PATTERN = re.compile(r"^(\d+)([mh])$")
_BRANCH_UNSAFE = re.compile(r"[^a-z0-9-]")


class PRStrategy(StrEnum):
    """What happens to a worker PR once CI passes."""

    AUTO = "auto"
    REVIEW = "review"
    MANUAL = "manual"


class AutopilotConfig(BaseModel):
    """Immutable per-run autopilot policy.

    Field names are snake_case; the camelCase keys of the persisted
    document are accepted as aliases.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    pr_strategy: PRStrategy = Field(default=PRStrategy.REVIEW, alias="prStrategy")
    max_concurrent_workers: int = Field(default=3, alias="maxConcurrentWorkers")
    auto_label_non_blocking: bool = Field(default=False, alias="autoLabelNonBlocking")
    worker_timeout: str = Field(default="30m", alias="workerTimeout")
    required_checks: tuple[str, ...] = Field(default=("test", "build"), alias="requiredChecks")
    branch_pattern: str = Field(default="claude-worker/{feature-id}", alias="branchPattern")
    worker_label: str = Field(default="ready-for-claude", alias="workerLabel")
    review_label: str = Field(default="ready-for-review", alias="reviewLabel")

    @field_validator("pr_strategy", mode="before")
    @classmethod
    def validate_pr_strategy(cls, v: Any) -> Any:
        if not isinstance(v, str) or v not in {s.value for s in PRStrategy}:
            raise ValueError(f"Invalid pr_strategy: {v}. Must be 'auto', 'review', or 'manual'")
        return v

    @field_validator("max_concurrent_workers")
    @classmethod
    def validate_max_concurrent_workers(cls, v: int) -> int:
        if not MIN_WORKERS <= v <= MAX_WORKERS:
            raise ValueError(
                f"max_concurrent_workers must be between {MIN_WORKERS} and {MAX_WORKERS}, got {v}"
            )
        return v

    @field_validator("required_checks", mode="before")
    @classmethod
    def validate_required_checks(cls, v: Any) -> Any:
        if isinstance(v, str) or not isinstance(v, list | tuple):
            raise ValueError("required_checks must be a list of check names")
        return v

    @property
    def worker_timeout_seconds(self) -> int:
        """Worker timeout in seconds (falls back to 30 minutes when malformed)."""
        return parse_timeout(self.worker_timeout)

    def to_document(self) -> dict[str, Any]:
        """Serialize with the document's camelCase keys."""
        data = self.model_dump(by_alias=True, mode="json")
        data["requiredChecks"] = list(self.required_checks)
        return data


DEFAULT_AUTOPILOT_CONFIG = AutopilotConfig()


def _format_errors(exc: ValidationError) -> list[str]:
    messages = []
    for err in exc.errors():
        original = (err.get("ctx") or {}).get("error")
        if original is not None:
            messages.append(str(original))
        else:
            field = ".".join(str(part) for part in err["loc"])
            messages.append(f"{field}: {err['msg']}")
    return messages


def merge_autopilot_config(partial: Mapping[str, Any] | None = None) -> AutopilotConfig:
    """Overlay a partial config on the defaults.

    Args:
        partial: Config values, snake_case or camelCase keys.

    Returns:
        The validated AutopilotConfig.

    Raises:
        ConfigValidationError: If any field is invalid.
    """
    try:
        return AutopilotConfig.model_validate(dict(partial or {}))
    except ValidationError as e:
        errors = _format_errors(e)
        logger.error("Invalid autopilot config: %s", "; ".join(errors))
        raise ConfigValidationError(errors) from e


def validate_autopilot_config(partial: Mapping[str, Any]) -> tuple[bool, list[str]]:
    """Validate a partial config without raising.

    Returns:
        Tuple of (valid, error messages).
    """
    try:
        merge_autopilot_config(partial)
    except ConfigValidationError as e:
        return False, e.errors
    return True, []


def load_autopilot_config(document: Mapping[str, Any]) -> AutopilotConfig:
    """Read the autopilot section of an already-parsed document.

    The section lives under ``autopilot`` or ``config.autopilot``; a document
    with neither yields the defaults.
    """
    section = document.get("autopilot")
    if section is None:
        section = (document.get("config") or {}).get("autopilot")
    return merge_autopilot_config(section or {})


def parse_timeout(timeout: str) -> int:
    """Parse a ``<N>m`` / ``<N>h`` duration into seconds.

    Malformed input falls back to the 30 minute default.
    """
    match = _TIMEOUT_PATTERN.match(timeout.strip()) if isinstance(timeout, str) else None
    if not match:
        logger.warning("Invalid worker timeout %r, using default of 30m", timeout)
        return DEFAULT_TIMEOUT_SECONDS

    value = int(match.group(1))
    if match.group(2) == "h":
        return value * 60 * 60
    return value * 60


def generate_worker_branch(
    feature_id: str, pattern: str = DEFAULT_AUTOPILOT_CONFIG.branch_pattern
) -> str:
    """Branch name for a feature's worker.

    The id is lower-cased and every character outside ``[a-z0-9-]`` becomes ``-``.
    """
    return pattern.replace("{feature-id}", _BRANCH_UNSAFE.sub("-", feature_id.lower()))


def describe_pr_strategy(strategy: PRStrategy | str) -> str:
    """Human-readable description of a PR strategy."""
    match strategy:
        case PRStrategy.AUTO:
            return "Automatically merge when CI passes"
        case PRStrategy.REVIEW:
            return "Add review label when CI passes, wait for human approval"
        case PRStrategy.MANUAL:
            return "Create PR only, no automatic actions"
        case _:
            return "Unknown strategy"
