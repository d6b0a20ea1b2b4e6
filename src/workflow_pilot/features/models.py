"""Data models for the feature backlog."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


class FeatureStatus(StrEnum):
    """Feature lifecycle status."""

    PLANNED = "planned"
    READY = "ready"
    IN_PROGRESS = "in_progress"
    BLOCKED = "blocked"
    IMPLEMENTED = "implemented"
    VERIFIED = "verified"


class DocumentShape(StrEnum):
    """Stored layout of a feature list document."""

    FLAT = "flat"
    SPRINTED = "sprinted"


# Statuses a feature keeps regardless of its dependency graph
STARTED_STATUSES = frozenset(
    {FeatureStatus.IN_PROGRESS, FeatureStatus.IMPLEMENTED, FeatureStatus.VERIFIED}
)


def utc_now_iso() -> str:
    """Current time as an ISO-8601 string."""
    return datetime.now(UTC).isoformat()


def _coerce_status(value: str) -> FeatureStatus | str:
    """Map a stored status string to FeatureStatus, keeping unknown values."""
    try:
        return FeatureStatus(value)
    except ValueError:
        return value


@dataclass
class FeatureStep:
    """Implementation step within a feature."""

    id: str
    description: str
    completed: bool = False
    notes: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FeatureStep:
        return cls(
            id=str(data["id"]),
            description=data.get("description", ""),
            completed=bool(data.get("completed", False)),
            notes=data.get("notes"),
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "description": self.description,
            "completed": self.completed,
        }
        if self.notes is not None:
            result["notes"] = self.notes
        return result


@dataclass
class AcceptanceCriterion:
    """Acceptance criterion checked during verification."""

    id: str
    description: str
    verified: bool = False
    verified_at: str | None = None
    notes: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AcceptanceCriterion:
        return cls(
            id=str(data["id"]),
            description=data.get("description", ""),
            verified=bool(data.get("verified", False)),
            verified_at=data.get("verifiedAt"),
            notes=data.get("notes"),
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "description": self.description,
            "verified": self.verified,
        }
        if self.verified_at is not None:
            result["verifiedAt"] = self.verified_at
        if self.notes is not None:
            result["notes"] = self.notes
        return result


# Optional Feature attributes and their document keys
_OPTIONAL_FEATURE_KEYS = {
    "priority": "priority",
    "started_at": "startedAt",
    "completed_at": "completedAt",
    "verified_at": "verifiedAt",
    "notes": "notes",
    "github_issue": "githubIssue",
    "github_pr": "githubPR",
    "github_branch": "githubBranch",
}

_KNOWN_FEATURE_KEYS = {
    "id",
    "name",
    "description",
    "blocking",
    "dependsOn",
    "status",
    "passes",
    "sprint",
    "steps",
    "acceptanceCriteria",
    "createdAt",
    *_OPTIONAL_FEATURE_KEYS.values(),
}


@dataclass
class Feature:
    """A unit of work in the backlog.

    Attributes:
        id: Unique identifier within the feature list.
        name: Short name.
        description: What the feature delivers.
        blocking: Other features may not proceed until this one passes.
        depends_on: Ids of features this one depends on, in order.
        status: Last recorded status (FeatureStatus or a provider-specific string).
        passes: True only after acceptance criteria were verified.
        sprint: Sprint number (1-based).
        steps: Implementation steps.
        acceptance_criteria: Criteria checked during verification.
        github_issue: Linked issue number; presence means the feature is tracked.
        github_pr: Linked pull request number.
        github_branch: Worker branch name.
        extra: Document keys this model does not know, kept for round-trips.
    """

    id: str
    name: str
    description: str = ""
    blocking: bool = False
    depends_on: list[str] = field(default_factory=list)
    status: FeatureStatus | str = FeatureStatus.PLANNED
    passes: bool = False
    sprint: int = 1
    steps: list[FeatureStep] = field(default_factory=list)
    acceptance_criteria: list[AcceptanceCriterion] = field(default_factory=list)
    priority: int | None = None
    created_at: str = field(default_factory=utc_now_iso)
    started_at: str | None = None
    completed_at: str | None = None
    verified_at: str | None = None
    notes: str | None = None
    github_issue: int | None = None
    github_pr: int | None = None
    github_branch: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Feature:
        """Build a Feature from its document representation."""
        kwargs: dict[str, Any] = {
            attr: data[key] for attr, key in _OPTIONAL_FEATURE_KEYS.items() if key in data
        }
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            description=data.get("description", ""),
            blocking=bool(data.get("blocking", False)),
            depends_on=[str(dep) for dep in data.get("dependsOn", [])],
            status=_coerce_status(data.get("status", FeatureStatus.PLANNED.value)),
            passes=bool(data.get("passes", False)),
            sprint=int(data.get("sprint", 1)),
            steps=[FeatureStep.from_dict(s) for s in data.get("steps", [])],
            acceptance_criteria=[
                AcceptanceCriterion.from_dict(c) for c in data.get("acceptanceCriteria", [])
            ],
            created_at=data.get("createdAt") or utc_now_iso(),
            extra={k: v for k, v in data.items() if k not in _KNOWN_FEATURE_KEYS},
            **kwargs,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted document representation."""
        result: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "blocking": self.blocking,
            "dependsOn": list(self.depends_on),
            "status": str(self.status),
            "passes": self.passes,
            "sprint": self.sprint,
            "steps": [s.to_dict() for s in self.steps],
            "acceptanceCriteria": [c.to_dict() for c in self.acceptance_criteria],
            "createdAt": self.created_at,
        }
        for attr, key in _OPTIONAL_FEATURE_KEYS.items():
            value = getattr(self, attr)
            if value is not None:
                result[key] = value
        result.update(self.extra)
        return result


_SPRINT_KEYS = {
    "name": "name",
    "goal": "goal",
    "started_at": "startedAt",
    "completed_at": "completedAt",
}

_KNOWN_SPRINT_KEYS = {"number", "status", "features", *_SPRINT_KEYS.values()}

_KNOWN_PROJECT_KEYS = {"name", "description", "createdAt"}


@dataclass
class Sprint:
    """Sprint definition."""

    number: int
    name: str | None = None
    goal: str | None = None
    status: str = "planned"  # planned | active | completed
    started_at: str | None = None
    completed_at: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Sprint:
        return cls(
            number=int(data["number"]),
            name=data.get("name"),
            goal=data.get("goal"),
            status=data.get("status", "planned"),
            started_at=data.get("startedAt"),
            completed_at=data.get("completedAt"),
            extra={k: v for k, v in data.items() if k not in _KNOWN_SPRINT_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"number": self.number, "status": self.status}
        for attr, key in _SPRINT_KEYS.items():
            value = getattr(self, attr)
            if value is not None:
                result[key] = value
        result.update(self.extra)
        return result


@dataclass
class ProjectInfo:
    """Project metadata stored with the feature list."""

    name: str
    description: str = ""
    created_at: str = field(default_factory=utc_now_iso)
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProjectInfo:
        return cls(
            name=data.get("name", ""),
            description=data.get("description", ""),
            created_at=data.get("createdAt") or utc_now_iso(),
            extra={k: v for k, v in data.items() if k not in _KNOWN_PROJECT_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "createdAt": self.created_at,
            **self.extra,
        }


@dataclass
class FeatureList:
    """The backlog: ordered features plus sprint and project metadata.

    The order of ``features`` is significant; other tooling indexes the
    persisted document by position as well as by id. ``shape`` records the
    layout the document was read from so it is written back the same way.
    """

    project: ProjectInfo
    features: list[Feature] = field(default_factory=list)
    sprints: list[Sprint] = field(default_factory=list)
    version: str = "1.0.0"
    metadata: dict[str, Any] = field(default_factory=dict)
    shape: DocumentShape = DocumentShape.FLAT
    extra: dict[str, Any] = field(default_factory=dict)

    def feature(self, feature_id: str) -> Feature | None:
        """Find a feature by id."""
        for feature in self.features:
            if feature.id == feature_id:
                return feature
        return None

    def feature_for_pr(self, pr_number: int) -> Feature | None:
        """Find the feature linked to a pull request."""
        for feature in self.features:
            if feature.github_pr == pr_number:
                return feature
        return None

    def active_sprint(self) -> Sprint | None:
        """First sprint marked active, if any."""
        for sprint in self.sprints:
            if sprint.status == "active":
                return sprint
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted document representation, in its original shape."""
        result: dict[str, Any] = {"version": self.version, "project": self.project.to_dict()}
        if self.shape is DocumentShape.SPRINTED:
            result["sprints"] = self._nested_sprints()
        else:
            result["sprints"] = [s.to_dict() for s in self.sprints]
            result["features"] = [f.to_dict() for f in self.features]
        if self.metadata:
            result["metadata"] = dict(self.metadata)
        result.update(self.extra)
        return result

    def _nested_sprints(self) -> list[dict[str, Any]]:
        """Sprint entries with their features nested in list order.

        A feature whose sprint has no entry gets a new planned sprint, so no
        feature is dropped.
        """
        by_number: dict[int, list[dict[str, Any]]] = {}
        for feature in self.features:
            data = feature.to_dict()
            # The enclosing sprint carries the number
            del data["sprint"]
            by_number.setdefault(feature.sprint, []).append(data)

        nested = []
        for sprint in self.sprints:
            nested.append({**sprint.to_dict(), "features": by_number.pop(sprint.number, [])})
        for number, features in by_number.items():
            nested.append({**Sprint(number=number).to_dict(), "features": features})
        return nested


def create_feature(feature_id: str, name: str, description: str = "", **options: Any) -> Feature:
    """Create a feature with defaults."""
    return Feature(id=feature_id, name=name, description=description, **options)


def create_empty_feature_list(project_name: str, description: str = "") -> FeatureList:
    """Create a feature list with a single planned sprint."""
    now = utc_now_iso()
    return FeatureList(
        project=ProjectInfo(name=project_name, description=description, created_at=now),
        sprints=[Sprint(number=1, name="Initial Development", status="planned")],
        metadata={"generatedFrom": "manual", "lastUpdated": now},
    )
