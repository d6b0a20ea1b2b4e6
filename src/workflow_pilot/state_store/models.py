"""SQLAlchemy models for the State Store."""

from __future__ import annotations

import uuid
from datetime import datetime  # noqa: TC003 - used at runtime for SQLAlchemy
from enum import StrEnum
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from workflow_pilot.phases import DevelopmentPhase


class EventType(StrEnum):
    """Kinds of orchestration events kept in the history."""

    WORKER_START = "worker.start"
    WORKER_COMPLETE = "worker.complete"
    WORKER_FAIL = "worker.fail"
    WORKER_TIMEOUT = "worker.timeout"
    PR_CREATED = "pr.created"
    PR_CI_PASS = "pr.ci_pass"
    PR_CI_FAIL = "pr.ci_fail"
    PR_MERGED = "pr.merged"
    PR_CLOSED = "pr.closed"
    FEATURE_STARTED = "feature.started"
    FEATURE_COMPLETED = "feature.completed"
    SPRINT_COMPLETED = "sprint.completed"
    PHASE_CHANGED = "phase.changed"
    SYSTEM_START = "system.start"
    SYSTEM_ERROR = "system.error"


def generate_uuid() -> str:
    """Generate a new UUID string."""
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class ProjectState(Base):
    """Orchestrator state of one project.

    ``version`` increases on every write and is used for compare-and-swap.
    """

    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    repo: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    phase: Mapped[str] = mapped_column(String(20), nullable=False)
    current_sprint: Mapped[int] = mapped_column(Integer, nullable=False)
    current_feature: Mapped[str | None] = mapped_column(String(255), nullable=True)
    feature_list_path: Mapped[str] = mapped_column(String(1024), nullable=False)
    session_count: Mapped[int] = mapped_column(Integer, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    events: Mapped[list[EventRecord]] = relationship(
        "EventRecord", back_populates="project", cascade="all, delete-orphan"
    )

    def __init__(
        self,
        name: str,
        repo: str,
        id: str | None = None,
        phase: str | None = None,
        current_sprint: int = 1,
        current_feature: str | None = None,
        feature_list_path: str = "feature_list.json",
        session_count: int = 0,
        version: int = 1,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.id = id if id is not None else generate_uuid()
        self.name = name
        self.repo = repo
        self.phase = phase if phase is not None else DevelopmentPhase.ONBOARDING.value
        self.current_sprint = current_sprint
        self.current_feature = current_feature
        self.feature_list_path = feature_list_path
        self.session_count = session_count
        self.version = version

    @property
    def development_phase(self) -> DevelopmentPhase:
        """Get phase as DevelopmentPhase enum."""
        return DevelopmentPhase(self.phase)

    def __repr__(self) -> str:
        return f"<ProjectState(id={self.id!r}, repo={self.repo!r}, phase={self.phase!r})>"


class EventRecord(Base):
    """One entry in a project's event history."""

    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[str] = mapped_column(String(36), ForeignKey("projects.id"), nullable=False)
    event_type: Mapped[str] = mapped_column(String(50), nullable=False)
    feature_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    pr_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    issue_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )

    project: Mapped[ProjectState] = relationship("ProjectState", back_populates="events")

    def __init__(
        self,
        project_id: str,
        event_type: str,
        message: str = "",
        feature_id: str | None = None,
        pr_number: int | None = None,
        issue_number: int | None = None,
        data: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.project_id = project_id
        self.event_type = event_type
        self.message = message
        self.feature_id = feature_id
        self.pr_number = pr_number
        self.issue_number = issue_number
        self.data = data if data is not None else {}

    def __repr__(self) -> str:
        return f"<EventRecord(id={self.id!r}, event_type={self.event_type!r})>"
