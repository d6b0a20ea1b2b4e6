"""Pydantic models for REST API."""

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from workflow_pilot.features import effective_status
from workflow_pilot.github import MergeMethod
from workflow_pilot.phases import DevelopmentPhase

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """Standard API response wrapper."""

    data: T | None = None
    error: str | None = None


# Project models


class ProjectCreate(BaseModel):
    """Request model for creating a project."""

    name: str = Field(..., min_length=1, max_length=255)
    repo: str = Field(..., min_length=3, max_length=255, pattern=r"^[\w\-\.]+/[\w\-\.]+$")
    feature_list_path: str = Field(default="feature_list.json", min_length=1, max_length=1024)
    phase: DevelopmentPhase = DevelopmentPhase.ONBOARDING


class ProjectResponse(BaseModel):
    """Response model for a project."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    repo: str
    phase: str
    current_sprint: int
    current_feature: str | None
    feature_list_path: str
    session_count: int
    version: int
    created_at: datetime
    updated_at: datetime


def project_to_response(project: Any) -> ProjectResponse:
    """Convert a ProjectState model to ProjectResponse."""
    return ProjectResponse.model_validate(project)


# Feature models


class FeatureResponse(BaseModel):
    """A feature with its resolved status."""

    id: str
    name: str
    description: str
    sprint: int
    blocking: bool
    depends_on: list[str]
    status: str
    effective_status: str
    passes: bool
    github_issue: int | None
    github_pr: int | None
    github_branch: str | None


def feature_to_response(feature: Any, all_features: list[Any]) -> FeatureResponse:
    """Convert a Feature to FeatureResponse, resolving its effective status."""
    return FeatureResponse(
        id=feature.id,
        name=feature.name,
        description=feature.description,
        sprint=feature.sprint,
        blocking=feature.blocking,
        depends_on=list(feature.depends_on),
        status=str(feature.status),
        effective_status=str(effective_status(feature, all_features)),
        passes=feature.passes,
        github_issue=feature.github_issue,
        github_pr=feature.github_pr,
        github_branch=feature.github_branch,
    )


# Autopilot models


class AutopilotStatusResponse(BaseModel):
    """Response model for autopilot status."""

    model_config = ConfigDict(from_attributes=True)

    project_id: str
    phase: str
    current_sprint: int
    ready_features: int
    in_progress_features: int
    max_workers: int
    pr_strategy: str


def autopilot_status_to_response(status: Any) -> AutopilotStatusResponse:
    """Convert an AutopilotStatus to AutopilotStatusResponse."""
    return AutopilotStatusResponse.model_validate(status)


class IntakeRequest(BaseModel):
    """Request model for an admission pass."""

    max_to_label: int | None = Field(default=None, ge=0)
    dry_run: bool = False


class SkippedFeatureResponse(BaseModel):
    """A feature left out of an admission pass."""

    model_config = ConfigDict(from_attributes=True)

    feature_id: str
    reason: str


class DispatchErrorResponse(BaseModel):
    """A failed dispatch."""

    model_config = ConfigDict(from_attributes=True)

    feature_id: str
    error: str


class LabelingResultResponse(BaseModel):
    """Response model for an admission pass."""

    model_config = ConfigDict(from_attributes=True)

    labeled: list[str]
    skipped: list[SkippedFeatureResponse]
    errors: list[DispatchErrorResponse]


def labeling_result_to_response(result: Any) -> LabelingResultResponse:
    """Convert a LabelingResult to LabelingResultResponse."""
    return LabelingResultResponse.model_validate(result)


# Pull request models


class CICheckResponse(BaseModel):
    """A single CI check."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    status: str
    conclusion: str | None
    url: str | None


class PRStatusResponse(BaseModel):
    """Response model for a pull request's gate status."""

    model_config = ConfigDict(from_attributes=True)

    pr_number: int
    result: str
    checks: list[CICheckResponse]
    required_checks: list[str]
    passed_checks: list[str]
    failed_checks: list[str]
    pending_checks: list[str]
    missing_checks: list[str]
    mergeable: bool | None
    state: str
    draft: bool
    review_decision: str | None
    summary: str


def pr_status_to_response(status: Any) -> PRStatusResponse:
    """Convert a PRStatus to PRStatusResponse."""
    return PRStatusResponse.model_validate(status)


class ProcessPullsRequest(BaseModel):
    """Request model for processing pull requests."""

    pr_numbers: list[int] = Field(..., min_length=1)
    merge_method: MergeMethod = MergeMethod.SQUASH
    delete_branch: bool = True
    dry_run: bool = False


class AutoMergeResultResponse(BaseModel):
    """Outcome of processing one pull request."""

    model_config = ConfigDict(from_attributes=True)

    pr_number: int
    success: bool
    action: str
    message: str
    strategy: str
    error: str | None
    status: PRStatusResponse | None


def auto_merge_result_to_response(result: Any) -> AutoMergeResultResponse:
    """Convert an AutoMergeResult to AutoMergeResultResponse."""
    return AutoMergeResultResponse.model_validate(result)


# Phase models


class PhaseResponse(BaseModel):
    """A project's current phase."""

    phase: str
    description: str
    progress: str
    next_phases: list[str]
    is_terminal: bool
    version: int


class PhaseTransitionRequest(BaseModel):
    """Request model for a phase transition."""

    target: DevelopmentPhase
    expected_version: int | None = None


# Event models


class EventResponse(BaseModel):
    """Response model for an event history entry."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    project_id: str
    event_type: str
    message: str
    feature_id: str | None
    pr_number: int | None
    issue_number: int | None
    data: dict[str, Any]
    created_at: datetime


def event_to_response(event: Any) -> EventResponse:
    """Convert an EventRecord to EventResponse."""
    return EventResponse.model_validate(event)
