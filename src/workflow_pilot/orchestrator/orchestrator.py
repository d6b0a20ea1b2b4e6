"""Orchestrator - Runs the intake and promotion cadences for a project."""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

from workflow_pilot.config import DEFAULT_AUTOPILOT_CONFIG
from workflow_pilot.features import (
    FeatureListNotFoundError,
    FeatureStatus,
    all_features_verified,
    effective_status,
)
from workflow_pilot.features.models import utc_now_iso
from workflow_pilot.gating import CIGateChecker, GateResult
from workflow_pilot.github import GitHubClient
from workflow_pilot.merge import AutoMergeEngine, AutoMergeOptions, MergeAction
from workflow_pilot.orchestrator.exceptions import NoFeatureListError
from workflow_pilot.orchestrator.models import AutopilotStatus, ProjectContext
from workflow_pilot.phases import get_recommended_next_phase
from workflow_pilot.state_store import EventType
from workflow_pilot.workers import WorkerLabeler

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from workflow_pilot.config import AutopilotConfig
    from workflow_pilot.features import FeatureList
    from workflow_pilot.gating import PRStatus
    from workflow_pilot.merge import AutoMergeResult
    from workflow_pilot.state_store import ProjectState, StateStore
    from workflow_pilot.workers import LabelingResult

logger = logging.getLogger(__name__)

_PR_EVENTS = {
    MergeAction.MERGED: EventType.PR_MERGED,
    MergeAction.LABELED: EventType.PR_CI_PASS,
}


def _default_client(repo: str) -> GitHubClient:
    return GitHubClient(repo=repo, token=os.environ.get("GITHUB_TOKEN", ""))


class Orchestrator:
    """Coordinates admission, gating and promotion for projects.

    Two independent cadences drive a project:
    - intake: dispatch ready features to workers (admission control).
    - promotion: gate and merge the pull requests workers produce.

    Project phase and event history live in the StateStore; the feature
    list lives in its document, reached through a ProjectContext.
    """

    def __init__(
        self,
        state_store: StateStore,
        client_factory: Callable[[str], GitHubClient] | None = None,
    ) -> None:
        """Initialize the Orchestrator.

        Args:
            state_store: StateStore for phase, sprint and events.
            client_factory: Builds a GitHub client for an "owner/repo" name.
                Defaults to GitHubClient with GITHUB_TOKEN.
        """
        self.state_store = state_store
        self.client_factory = client_factory or _default_client

    def context_for(
        self, project_id: str, config: AutopilotConfig = DEFAULT_AUTOPILOT_CONFIG
    ) -> ProjectContext:
        """Build a context handle for a stored project.

        Raises:
            ProjectNotFoundError: If the project doesn't exist.
        """
        project = self.state_store.get_project(project_id)
        return ProjectContext(
            project_id=project.id,
            feature_list_path=project.feature_list_path,
            client=self.client_factory(project.repo),
            config=config,
        )

    def checker(self, ctx: ProjectContext) -> CIGateChecker:
        """Gate checker for a project."""
        return CIGateChecker(ctx.client, ctx.config)

    # --- Intake ---

    def intake(
        self,
        ctx: ProjectContext,
        *,
        max_to_label: int | None = None,
        dry_run: bool = False,
    ) -> LabelingResult:
        """Run one admission pass and persist what it changed.

        Args:
            ctx: Project handle.
            max_to_label: Optional lower cap for this pass.
            dry_run: Decide without dispatching or writing anything.

        Returns:
            LabelingResult from the admission controller.

        Raises:
            NoFeatureListError: If the project has no feature list.
        """
        feature_list = self._load(ctx)
        labeler = WorkerLabeler(ctx.client, ctx.config)
        result = labeler.label_eligible_features(
            feature_list, max_to_label=max_to_label, dry_run=dry_run
        )

        if dry_run:
            return result

        if result.labeled:
            ctx.save()

        for feature_id in result.labeled:
            feature = feature_list.feature(feature_id)
            self.state_store.record_event(
                ctx.project_id,
                EventType.WORKER_START,
                message=f"Worker dispatched for feature {feature_id}",
                feature_id=feature_id,
                issue_number=feature.github_issue if feature else None,
                data={"branch": feature.github_branch if feature else None},
            )
        for error in result.errors:
            self.state_store.record_event(
                ctx.project_id,
                EventType.WORKER_FAIL,
                message=error.error,
                feature_id=error.feature_id,
            )
        return result

    # --- Promotion ---

    def check_pr(self, ctx: ProjectContext, pr_number: int) -> PRStatus:
        """Gate status of one pull request."""
        return self.checker(ctx).check_status(pr_number)

    def promote(
        self,
        ctx: ProjectContext,
        pr_numbers: Iterable[int],
        options: AutoMergeOptions | None = None,
    ) -> dict[int, AutoMergeResult]:
        """Apply the PR strategy to worker pull requests.

        A merged PR marks its linked feature as implemented. With
        ``auto_label_non_blocking`` set, a pass that completed features is
        followed by an admission pass, so ready non-blocking features are
        dispatched without waiting for the next intake.

        Args:
            ctx: Project handle.
            pr_numbers: PRs to process, in order.
            options: Merge options, including dry run.

        Returns:
            Result per PR number.
        """
        options = options or AutoMergeOptions()
        engine = AutoMergeEngine(ctx.client, self.checker(ctx), ctx.config)
        results = engine.process_multiple(pr_numbers, options)

        if options.dry_run:
            return results

        completed = []
        for pr_number, result in results.items():
            self._record_pr_event(ctx, result)
            if result.action == MergeAction.MERGED:
                feature_id = self._complete_feature_for_pr(ctx, pr_number)
                if feature_id is not None:
                    completed.append(feature_id)

        if completed:
            ctx.save()
            for feature_id in completed:
                self.state_store.record_event(
                    ctx.project_id,
                    EventType.FEATURE_COMPLETED,
                    message=f"Feature {feature_id} implemented",
                    feature_id=feature_id,
                )

        if completed and ctx.config.auto_label_non_blocking:
            follow_up = self.intake(ctx)
            logger.info(
                "Admission after merge of %s: %d labeled",
                ", ".join(completed),
                len(follow_up.labeled),
            )
        return results

    def _complete_feature_for_pr(self, ctx: ProjectContext, pr_number: int) -> str | None:
        if not ctx.has_feature_list():
            return None
        feature = ctx.feature_list().feature_for_pr(pr_number)
        if feature is None:
            logger.warning("Merged PR #%d is not linked to any feature", pr_number)
            return None
        feature.status = FeatureStatus.IMPLEMENTED
        feature.completed_at = utc_now_iso()
        return feature.id

    def _record_pr_event(self, ctx: ProjectContext, result: AutoMergeResult) -> None:
        event_type = _PR_EVENTS.get(result.action)
        if event_type is None and result.status is not None:
            if result.status.result == GateResult.FAIL:
                event_type = EventType.PR_CI_FAIL
        if event_type is None:
            return
        self.state_store.record_event(
            ctx.project_id,
            event_type,
            message=result.message,
            pr_number=result.pr_number,
            data={"action": result.action.value, "strategy": result.strategy},
        )

    # --- Phases and status ---

    def advance_phase(
        self, ctx: ProjectContext, *, production_checks_pass: bool = False
    ) -> ProjectState:
        """Move the project to its recommended next phase.

        The phase is left unchanged when no transition is recommended.

        Raises:
            StaleStateError: If the project changed while deciding.
        """
        project = self.state_store.get_project(ctx.project_id)
        has_feature_list = ctx.has_feature_list()
        verified = has_feature_list and all_features_verified(ctx.feature_list())

        target = get_recommended_next_phase(
            project.phase,
            has_feature_list=has_feature_list,
            all_features_verified=verified,
            production_checks_pass=production_checks_pass,
        )
        if target is None:
            logger.info("No phase transition recommended for project %s", ctx.project_id)
            return project

        return self.state_store.transition_phase(
            ctx.project_id, target, expected_version=project.version
        )

    def get_autopilot_status(self, ctx: ProjectContext) -> AutopilotStatus:
        """Summarize a project's autopilot state."""
        project = self.state_store.get_project(ctx.project_id)

        ready = in_progress = 0
        if ctx.has_feature_list():
            features = ctx.feature_list().features
            for feature in features:
                status = effective_status(feature, features)
                if status == FeatureStatus.READY:
                    ready += 1
                elif status == FeatureStatus.IN_PROGRESS:
                    in_progress += 1

        return AutopilotStatus(
            project_id=project.id,
            phase=project.phase,
            current_sprint=project.current_sprint,
            ready_features=ready,
            in_progress_features=in_progress,
            max_workers=ctx.config.max_concurrent_workers,
            pr_strategy=str(ctx.config.pr_strategy),
        )

    def _load(self, ctx: ProjectContext) -> FeatureList:
        try:
            return ctx.feature_list()
        except FeatureListNotFoundError as e:
            raise NoFeatureListError(
                f"Project '{ctx.project_id}' has no feature list at {ctx.feature_list_path}"
            ) from e
