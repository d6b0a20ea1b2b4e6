"""StateStore - Main API for State Store operations."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from workflow_pilot.phases import DevelopmentPhase, transition
from workflow_pilot.state_store.database import Database
from workflow_pilot.state_store.exceptions import (
    ProjectExistsError,
    ProjectNotFoundError,
    StaleStateError,
)
from workflow_pilot.state_store.models import EventRecord, EventType, ProjectState

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.orm import Session

logger = logging.getLogger("workflow_pilot.state_store")


class StateStore:
    """Persistent orchestrator state: project phase, sprint and event history.

    Every write to a project bumps its ``version``. Writers that pass
    ``expected_version`` get compare-and-swap semantics and a
    StaleStateError when another writer got there first.
    """

    def __init__(self, db_path: str = "workflow_pilot.db") -> None:
        """Initialize the store, creating tables if needed.

        Args:
            db_path: Path to SQLite database file
        """
        self._db = Database(db_path)
        self._db.create_tables()

    def close(self) -> None:
        """Close the database connection."""
        self._db.close()

    # --- Project Operations ---

    def create_project(
        self,
        name: str,
        repo: str,
        feature_list_path: str = "feature_list.json",
        phase: DevelopmentPhase = DevelopmentPhase.ONBOARDING,
    ) -> ProjectState:
        """Create a new project.

        Args:
            name: Human-readable project name
            repo: GitHub repo in "owner/repo" format
            feature_list_path: Location of the project's feature list document
            phase: Starting phase

        Returns:
            Created ProjectState with generated ID

        Raises:
            ProjectExistsError: If a project with the same repo already exists
        """
        session = self._db.get_session()
        try:
            project = ProjectState(
                name=name,
                repo=repo,
                phase=DevelopmentPhase(phase).value,
                feature_list_path=feature_list_path,
            )
            session.add(project)
            session.commit()
            session.refresh(project)
            logger.info("Created project %s (%s)", project.id, repo)
            return project
        except IntegrityError as e:
            session.rollback()
            raise ProjectExistsError(f"Project with repo '{repo}' already exists") from e
        finally:
            session.close()

    def get_project(self, project_id: str) -> ProjectState:
        """Get project by ID.

        Raises:
            ProjectNotFoundError: If project doesn't exist
        """
        session = self._db.get_session()
        try:
            return self._get(session, project_id)
        finally:
            session.close()

    def get_project_by_repo(self, repo: str) -> ProjectState:
        """Get project by repo name.

        Raises:
            ProjectNotFoundError: If project doesn't exist
        """
        session = self._db.get_session()
        try:
            stmt = select(ProjectState).where(ProjectState.repo == repo)
            project = session.execute(stmt).scalar_one_or_none()
            if project is None:
                raise ProjectNotFoundError(f"Project with repo '{repo}' not found")
            return project
        finally:
            session.close()

    def list_projects(self) -> list[ProjectState]:
        """List all projects, ordered by name."""
        session = self._db.get_session()
        try:
            stmt = select(ProjectState).order_by(ProjectState.name)
            return list(session.execute(stmt).scalars().all())
        finally:
            session.close()

    def delete_project(self, project_id: str) -> None:
        """Delete a project and its event history.

        Raises:
            ProjectNotFoundError: If project doesn't exist
        """
        session = self._db.get_session()
        try:
            session.delete(self._get(session, project_id))
            session.commit()
        finally:
            session.close()

    # --- State transitions ---

    def transition_phase(
        self,
        project_id: str,
        target: DevelopmentPhase | str,
        expected_version: int | None = None,
    ) -> ProjectState:
        """Move a project to another phase and record a phase.changed event.

        Args:
            project_id: The project's unique ID
            target: Requested phase
            expected_version: Version the caller read, for compare-and-swap

        Returns:
            The updated ProjectState

        Raises:
            ProjectNotFoundError: If project doesn't exist
            InvalidPhaseTransitionError: If the phase machine rejects the move
            StaleStateError: If the project changed since expected_version
        """

        def values(project: ProjectState) -> dict[str, Any]:
            return {"phase": transition(project.phase, target).value}

        def history(project: ProjectState, new_values: dict[str, Any]) -> EventRecord:
            return EventRecord(
                project_id=project.id,
                event_type=EventType.PHASE_CHANGED,
                message=f"Phase changed from {project.phase} to {new_values['phase']}",
                data={"from": project.phase, "to": new_values["phase"]},
            )

        return self._update(project_id, values, expected_version, history)

    def set_current_feature(
        self,
        project_id: str,
        feature_id: str | None,
        expected_version: int | None = None,
    ) -> ProjectState:
        """Set (or clear) the feature the project is focused on."""
        return self._update(project_id, lambda _: {"current_feature": feature_id}, expected_version)

    def advance_sprint(self, project_id: str, expected_version: int | None = None) -> ProjectState:
        """Move to the next sprint and record a sprint.completed event."""

        def history(project: ProjectState, _values: dict[str, Any]) -> EventRecord:
            return EventRecord(
                project_id=project.id,
                event_type=EventType.SPRINT_COMPLETED,
                message=f"Sprint {project.current_sprint} completed",
                data={"sprint": project.current_sprint},
            )

        return self._update(
            project_id,
            lambda project: {"current_sprint": project.current_sprint + 1},
            expected_version,
            history,
        )

    def start_session(self, project_id: str) -> ProjectState:
        """Count a new orchestration session for the project."""
        return self._update(
            project_id, lambda project: {"session_count": project.session_count + 1}
        )

    # --- Event Operations ---

    def record_event(
        self,
        project_id: str,
        event_type: EventType | str,
        message: str = "",
        feature_id: str | None = None,
        pr_number: int | None = None,
        issue_number: int | None = None,
        data: dict[str, Any] | None = None,
    ) -> EventRecord:
        """Append an event to a project's history.

        Raises:
            ProjectNotFoundError: If project doesn't exist
        """
        session = self._db.get_session()
        try:
            self._get(session, project_id)
            record = EventRecord(
                project_id=project_id,
                event_type=str(event_type),
                message=message,
                feature_id=feature_id,
                pr_number=pr_number,
                issue_number=issue_number,
                data=data,
            )
            session.add(record)
            session.commit()
            session.refresh(record)
            logger.debug("Recorded %s for project %s", record.event_type, project_id)
            return record
        finally:
            session.close()

    def list_events(
        self,
        project_id: str,
        event_type: EventType | str | None = None,
        limit: int = 100,
    ) -> list[EventRecord]:
        """List a project's events, most recent first.

        Raises:
            ProjectNotFoundError: If project doesn't exist
        """
        session = self._db.get_session()
        try:
            self._get(session, project_id)
            stmt = select(EventRecord).where(EventRecord.project_id == project_id)
            if event_type is not None:
                stmt = stmt.where(EventRecord.event_type == str(event_type))
            stmt = stmt.order_by(EventRecord.id.desc()).limit(limit)
            return list(session.execute(stmt).scalars().all())
        finally:
            session.close()

    # --- Internals ---

    def _get(self, session: Session, project_id: str) -> ProjectState:
        project = session.get(ProjectState, project_id)
        if project is None:
            raise ProjectNotFoundError(f"Project with id '{project_id}' not found")
        return project

    def _update(
        self,
        project_id: str,
        compute: Callable[[ProjectState], dict[str, Any]],
        expected_version: int | None = None,
        history: Callable[[ProjectState, dict[str, Any]], EventRecord] | None = None,
    ) -> ProjectState:
        """Apply a versioned update to a project row.

        ``compute`` derives the new column values from the current row. The
        UPDATE only matches the version that was read, so a concurrent writer
        causes StaleStateError instead of a lost update.
        """
        session = self._db.get_session()
        try:
            project = self._get(session, project_id)
            version = project.version
            if expected_version is not None and expected_version != version:
                raise StaleStateError(project_id, expected_version, version)

            values = compute(project)
            record = history(project, values) if history is not None else None

            result = session.execute(
                update(ProjectState)
                .where(ProjectState.id == project_id, ProjectState.version == version)
                .values(**values, version=version + 1)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                session.rollback()
                current = self._get(session, project_id)
                raise StaleStateError(project_id, version, current.version)

            if record is not None:
                session.add(record)
            session.commit()
            session.refresh(project)
            return project
        finally:
            session.close()
