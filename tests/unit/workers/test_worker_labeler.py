"""Unit tests for WorkerLabeler and worker context generation."""

from unittest.mock import MagicMock

import httpx
import pytest

from workflow_pilot.config import AutopilotConfig
from workflow_pilot.features import (
    AcceptanceCriterion,
    Feature,
    FeatureList,
    FeatureStatus,
    ProjectInfo,
)
from workflow_pilot.github import GitHubClient, Issue, IssueError
from workflow_pilot.workers import (
    WORKER_CONTEXT_HEADER,
    WorkerLabeler,
    check_eligibility,
    format_worker_context_markdown,
    generate_worker_context,
)


def _feature(feature_id: str, issue: int | None = None, **kwargs) -> Feature:
    return Feature(id=feature_id, name=feature_id.upper(), github_issue=issue, **kwargs)


def _feature_list(*features: Feature) -> FeatureList:
    return FeatureList(project=ProjectInfo(name="demo"), features=list(features))


@pytest.fixture
def mock_client() -> MagicMock:
    client = MagicMock()
    client.get_issue.side_effect = lambda n: Issue(number=n, title=f"Issue {n}", body="Body")
    return client


@pytest.fixture
def labeler(mock_client: MagicMock) -> WorkerLabeler:
    return WorkerLabeler(mock_client, AutopilotConfig(max_concurrent_workers=2))


@pytest.mark.unit
class TestCheckEligibility:
    """Tests for check_eligibility."""

    def test_eligible(self) -> None:
        feature = _feature("a", issue=1)

        eligibility = check_eligibility(feature, [feature])

        assert eligibility.eligible is True
        assert eligibility.reason == "Feature is eligible for worker processing"
        assert eligibility.issue_number == 1

    def test_no_issue(self) -> None:
        feature = _feature("a")
        assert check_eligibility(feature, [feature]).reason == "Feature has no linked GitHub issue"

    def test_blocking(self) -> None:
        feature = _feature("a", issue=1, blocking=True)
        eligibility = check_eligibility(feature, [feature])
        assert eligibility.eligible is False
        assert eligibility.reason == "Blocking features require human orchestration"

    def test_unmet_dependencies(self) -> None:
        auth = _feature("auth", issue=1, blocking=True)
        login = _feature("login", issue=2, depends_on=["auth"])

        eligibility = check_eligibility(login, [auth, login])

        assert eligibility.eligible is False
        assert eligibility.reason == "Feature has unsatisfied dependencies"

    def test_met_dependencies(self) -> None:
        auth = _feature("auth", issue=1, blocking=True, passes=True)
        login = _feature("login", issue=2, depends_on=["auth"])
        assert check_eligibility(login, [auth, login]).eligible is True

    @pytest.mark.parametrize(
        "status",
        [FeatureStatus.IN_PROGRESS, FeatureStatus.IMPLEMENTED, FeatureStatus.VERIFIED],
    )
    def test_already_started(self, status: FeatureStatus) -> None:
        feature = _feature("a", issue=1, status=status)
        eligibility = check_eligibility(feature, [feature])
        assert eligibility.eligible is False
        assert eligibility.reason == f"Feature is already {status}"

    def test_missing_issue_checked_first(self) -> None:
        """The first failing check decides the reason."""
        feature = _feature("a", blocking=True, status=FeatureStatus.IN_PROGRESS)
        assert check_eligibility(feature, [feature]).reason == "Feature has no linked GitHub issue"


@pytest.mark.unit
class TestWorkerContext:
    """Tests for worker context generation and rendering."""

    def test_generate(self) -> None:
        feature = _feature(
            "login",
            issue=12,
            description="Login form",
            depends_on=["auth"],
            acceptance_criteria=[AcceptanceCriterion(id="ac-1", description="Shows errors")],
        )

        context = generate_worker_context(feature, AutopilotConfig(branch_pattern="w/{feature-id}"))

        assert context.feature_id == "login"
        assert context.branch_name == "w/login"
        assert context.issue_number == 12
        assert context.acceptance_criteria == ["Shows errors"]
        assert context.depends_on == ["auth"]
        assert "scoped to feature login only" in context.scope

    def test_markdown_sections(self) -> None:
        feature = _feature(
            "login",
            issue=12,
            depends_on=["auth"],
            acceptance_criteria=[AcceptanceCriterion(id="ac-1", description="Shows errors")],
        )
        context = generate_worker_context(feature)
        context.related_files = ["src/login.py"]

        markdown = format_worker_context_markdown(context)

        assert markdown.startswith("---\n## Worker Context")
        assert "Create branch: `claude-worker/login`" in markdown
        assert "- [ ] Shows errors" in markdown
        assert "### Dependencies" in markdown
        assert "- `auth`" in markdown
        assert "- `src/login.py`" in markdown
        assert "`Fixes #12`" in markdown

    def test_markdown_without_dependencies(self) -> None:
        context = generate_worker_context(_feature("a", issue=1))

        markdown = format_worker_context_markdown(context)

        assert "### Dependencies" not in markdown
        assert "### Related Files" not in markdown


@pytest.mark.unit
class TestDispatchWorker:
    """Tests for WorkerLabeler.dispatch_worker."""

    def test_appends_context_and_labels(
        self, labeler: WorkerLabeler, mock_client: MagicMock
    ) -> None:
        feature = _feature("a", issue=5)

        labeler.dispatch_worker(feature, generate_worker_context(feature))

        kwargs = mock_client.update_issue.call_args.kwargs
        assert mock_client.update_issue.call_args.args == (5,)
        assert kwargs["labels"] == ["ready-for-claude"]
        assert kwargs["body"].startswith("Body\n\n---\n## Worker Context")

    def test_empty_body_gets_context_only(
        self, labeler: WorkerLabeler, mock_client: MagicMock
    ) -> None:
        mock_client.get_issue.side_effect = None
        mock_client.get_issue.return_value = Issue(number=5, title="t", body="")
        feature = _feature("a", issue=5)

        labeler.dispatch_worker(feature, generate_worker_context(feature))

        assert mock_client.update_issue.call_args.kwargs["body"].startswith("---")

    def test_context_appended_once(self, labeler: WorkerLabeler, mock_client: MagicMock) -> None:
        body = f"Body\n\n{WORKER_CONTEXT_HEADER}\nold"
        mock_client.get_issue.side_effect = None
        mock_client.get_issue.return_value = Issue(number=5, title="t", body=body)
        feature = _feature("a", issue=5)

        labeler.dispatch_worker(feature, generate_worker_context(feature))

        assert mock_client.update_issue.call_args.kwargs["body"] == body

    def test_already_labeled_is_untouched(
        self, labeler: WorkerLabeler, mock_client: MagicMock
    ) -> None:
        mock_client.get_issue.side_effect = None
        mock_client.get_issue.return_value = Issue(
            number=5, title="t", body="", labels=["ready-for-claude"]
        )
        feature = _feature("a", issue=5)

        labeler.dispatch_worker(feature, generate_worker_context(feature))

        mock_client.update_issue.assert_not_called()


@pytest.mark.unit
class TestLabelEligibleFeatures:
    """Tests for WorkerLabeler.label_eligible_features."""

    def test_labels_up_to_limit(self, labeler: WorkerLabeler, mock_client: MagicMock) -> None:
        features = _feature_list(
            _feature("a", issue=1), _feature("b", issue=2), _feature("c", issue=3)
        )

        result = labeler.label_eligible_features(features)

        assert result.labeled == ["a", "b"]
        assert [(s.feature_id, s.reason) for s in result.skipped] == [
            ("c", "Max concurrent workers limit reached")
        ]
        assert mock_client.update_issue.call_count == 2

    def test_updates_dispatched_features(self, labeler: WorkerLabeler) -> None:
        features = _feature_list(_feature("a", issue=1))

        labeler.label_eligible_features(features)

        feature = features.features[0]
        assert feature.status == FeatureStatus.IN_PROGRESS
        assert feature.github_branch == "claude-worker/a"
        assert feature.started_at is not None

    def test_max_to_label_lowers_cap(self, labeler: WorkerLabeler) -> None:
        features = _feature_list(_feature("a", issue=1), _feature("b", issue=2))

        result = labeler.label_eligible_features(features, max_to_label=1)

        assert result.labeled == ["a"]

    def test_max_to_label_cannot_raise_cap(self, labeler: WorkerLabeler) -> None:
        features = _feature_list(*(_feature(f"f{i}", issue=i) for i in range(1, 5)))

        result = labeler.label_eligible_features(features, max_to_label=10)

        assert len(result.labeled) == 2

    def test_ineligible_features_skipped_with_reason(self, labeler: WorkerLabeler) -> None:
        features = _feature_list(
            _feature("gate", issue=1, blocking=True),
            _feature("no-issue"),
            _feature("a", issue=2),
        )

        result = labeler.label_eligible_features(features)

        assert result.labeled == ["a"]
        assert {s.feature_id: s.reason for s in result.skipped} == {
            "gate": "Blocking features require human orchestration",
            "no-issue": "Feature has no linked GitHub issue",
        }

    def test_dry_run_changes_nothing(self, labeler: WorkerLabeler, mock_client: MagicMock) -> None:
        features = _feature_list(_feature("a", issue=1))

        result = labeler.label_eligible_features(features, dry_run=True)

        assert result.labeled == ["a"]
        assert features.features[0].status == FeatureStatus.PLANNED
        mock_client.get_issue.assert_not_called()
        mock_client.update_issue.assert_not_called()

    def test_dispatch_error_does_not_use_a_slot(
        self, labeler: WorkerLabeler, mock_client: MagicMock
    ) -> None:
        mock_client.update_issue.side_effect = [IssueError("boom"), None, None]
        features = _feature_list(
            _feature("a", issue=1), _feature("b", issue=2), _feature("c", issue=3)
        )

        result = labeler.label_eligible_features(features)

        assert [(e.feature_id, e.error) for e in result.errors] == [("a", "boom")]
        assert result.labeled == ["b", "c"]
        assert features.features[0].status == FeatureStatus.PLANNED

    def test_empty_list(self, labeler: WorkerLabeler) -> None:
        result = labeler.label_eligible_features(_feature_list())
        assert (result.labeled, result.skipped, result.errors) == ([], [], [])


@pytest.mark.unit
class TestWorkerCapacity:
    """Tests for active worker counting."""

    def test_active_count(self, labeler: WorkerLabeler, mock_client: MagicMock) -> None:
        mock_client.list_open_issues.return_value = [Issue(number=1, title="t", body="")]

        assert labeler.get_active_worker_count() == 1
        mock_client.list_open_issues.assert_called_once_with(labels=["ready-for-claude"])

    def test_active_count_on_error(self, labeler: WorkerLabeler, mock_client: MagicMock) -> None:
        mock_client.list_open_issues.side_effect = IssueError("boom")
        assert labeler.get_active_worker_count() == 0

    def test_can_spawn(self, labeler: WorkerLabeler, mock_client: MagicMock) -> None:
        mock_client.list_open_issues.return_value = [Issue(number=1, title="t", body="")]

        capacity = labeler.can_spawn_more_workers()

        assert capacity.can_spawn is True
        assert (capacity.current_count, capacity.max_allowed) == (1, 2)

    def test_cannot_spawn_at_limit(self, labeler: WorkerLabeler, mock_client: MagicMock) -> None:
        mock_client.list_open_issues.return_value = [
            Issue(number=n, title="t", body="") for n in (1, 2)
        ]
        assert labeler.can_spawn_more_workers().can_spawn is False


@pytest.mark.unit
class TestUnreadableProvider:
    """Malformed provider responses become per-feature errors."""

    def test_html_error_page_does_not_abort_pass(self) -> None:
        client = GitHubClient(repo="owner/repo", token="test-token")
        client._client = httpx.Client(
            base_url="https://api.github.com",
            transport=httpx.MockTransport(
                lambda _request: httpx.Response(200, text="<html>proxy error</html>")
            ),
        )
        labeler = WorkerLabeler(client, AutopilotConfig(max_concurrent_workers=2))
        fl = _feature_list(_feature("a", issue=1), _feature("b", issue=2))

        result = labeler.label_eligible_features(fl)

        assert result.labeled == []
        assert [e.feature_id for e in result.errors] == ["a", "b"]
        assert all(f.status == FeatureStatus.PLANNED for f in fl.features)
