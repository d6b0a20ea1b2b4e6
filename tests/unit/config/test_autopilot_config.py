"""Unit tests for autopilot configuration."""

import logging

import pytest
from pydantic import ValidationError

from workflow_pilot.config import (
    DEFAULT_AUTOPILOT_CONFIG,
    AutopilotConfig,
    ConfigValidationError,
    PRStrategy,
    describe_pr_strategy,
    generate_worker_branch,
    load_autopilot_config,
    merge_autopilot_config,
    parse_timeout,
    validate_autopilot_config,
)


@pytest.mark.unit
class TestDefaults:
    """Tests for the default config."""

    def test_default_values(self) -> None:
        config = DEFAULT_AUTOPILOT_CONFIG

        assert config.pr_strategy == PRStrategy.REVIEW
        assert config.max_concurrent_workers == 3
        assert config.auto_label_non_blocking is False
        assert config.worker_timeout == "30m"
        assert config.required_checks == ("test", "build")
        assert config.branch_pattern == "claude-worker/{feature-id}"
        assert config.worker_label == "ready-for-claude"
        assert config.review_label == "ready-for-review"

    def test_config_is_frozen(self) -> None:
        with pytest.raises(ValidationError):
            DEFAULT_AUTOPILOT_CONFIG.max_concurrent_workers = 5  # type: ignore[misc]


@pytest.mark.unit
class TestMergeAutopilotConfig:
    """Tests for merge_autopilot_config."""

    def test_empty_partial_gives_defaults(self) -> None:
        assert merge_autopilot_config() == DEFAULT_AUTOPILOT_CONFIG
        assert merge_autopilot_config({}) == DEFAULT_AUTOPILOT_CONFIG

    def test_camel_case_keys(self) -> None:
        """Document keys are accepted as aliases."""
        config = merge_autopilot_config(
            {"prStrategy": "auto", "maxConcurrentWorkers": 5, "requiredChecks": ["ci"]}
        )

        assert config.pr_strategy == PRStrategy.AUTO
        assert config.max_concurrent_workers == 5
        assert config.required_checks == ("ci",)
        assert config.review_label == "ready-for-review"

    def test_snake_case_keys(self) -> None:
        config = merge_autopilot_config({"pr_strategy": "manual", "worker_label": "bot"})
        assert config.pr_strategy == PRStrategy.MANUAL
        assert config.worker_label == "bot"

    @pytest.mark.parametrize("workers", [0, 11, -1])
    def test_worker_limit_out_of_range(self, workers: int) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            merge_autopilot_config({"maxConcurrentWorkers": workers})

        assert exc_info.value.errors == [
            f"max_concurrent_workers must be between 1 and 10, got {workers}"
        ]

    @pytest.mark.parametrize("workers", [1, 10])
    def test_worker_limit_bounds_accepted(self, workers: int) -> None:
        assert merge_autopilot_config({"maxConcurrentWorkers": workers}).max_concurrent_workers == (
            workers
        )

    def test_invalid_strategy(self) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            merge_autopilot_config({"prStrategy": "yolo"})

        assert "Invalid pr_strategy: yolo" in exc_info.value.errors[0]

    def test_required_checks_must_be_a_list(self) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            merge_autopilot_config({"requiredChecks": "test"})

        assert exc_info.value.errors == ["required_checks must be a list of check names"]

    def test_collects_every_error(self) -> None:
        """All invalid fields are reported, not only the first."""
        with pytest.raises(ConfigValidationError) as exc_info:
            merge_autopilot_config({"prStrategy": "yolo", "maxConcurrentWorkers": 99})

        assert len(exc_info.value.errors) == 2


@pytest.mark.unit
class TestValidateAutopilotConfig:
    """Tests for validate_autopilot_config."""

    def test_valid(self) -> None:
        assert validate_autopilot_config({"prStrategy": "auto"}) == (True, [])

    def test_invalid(self) -> None:
        valid, errors = validate_autopilot_config({"maxConcurrentWorkers": 0})
        assert valid is False
        assert errors == ["max_concurrent_workers must be between 1 and 10, got 0"]


@pytest.mark.unit
class TestLoadAutopilotConfig:
    """Tests for load_autopilot_config."""

    def test_reads_autopilot_section(self) -> None:
        config = load_autopilot_config({"autopilot": {"prStrategy": "auto"}})
        assert config.pr_strategy == PRStrategy.AUTO

    def test_reads_nested_config_section(self) -> None:
        config = load_autopilot_config({"config": {"autopilot": {"maxConcurrentWorkers": 2}}})
        assert config.max_concurrent_workers == 2

    def test_missing_section_gives_defaults(self) -> None:
        assert load_autopilot_config({"name": "x"}) == DEFAULT_AUTOPILOT_CONFIG


@pytest.mark.unit
class TestParseTimeout:
    """Tests for parse_timeout."""

    def test_minutes_and_hours_agree(self) -> None:
        assert parse_timeout("60m") == 3600
        assert parse_timeout("1h") == 3600

    def test_minutes(self) -> None:
        assert parse_timeout("45m") == 45 * 60

    @pytest.mark.parametrize("value", ["", "30", "30s", "m", "1.5h", "abc"])
    def test_invalid_falls_back_to_default(
        self, value: str, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="workflow_pilot.config"):
            assert parse_timeout(value) == 1800
        assert "Invalid worker timeout" in caplog.text

    def test_config_timeout_seconds(self) -> None:
        config = AutopilotConfig(worker_timeout="2h")
        assert config.worker_timeout_seconds == 7200


@pytest.mark.unit
class TestGenerateWorkerBranch:
    """Tests for generate_worker_branch."""

    def test_default_pattern(self) -> None:
        assert generate_worker_branch("F-12") == "claude-worker/f-12"

    def test_sanitizes_unsafe_characters(self) -> None:
        assert generate_worker_branch("Auth Login_v2!") == "claude-worker/auth-login-v2-"

    def test_custom_pattern(self) -> None:
        assert generate_worker_branch("X1", "work/{feature-id}/impl") == "work/x1/impl"


@pytest.mark.unit
class TestDocumentSerialization:
    """Tests for to_document and describe_pr_strategy."""

    def test_to_document_uses_camel_case(self) -> None:
        document = DEFAULT_AUTOPILOT_CONFIG.to_document()

        assert document["prStrategy"] == "review"
        assert document["maxConcurrentWorkers"] == 3
        assert document["requiredChecks"] == ["test", "build"]

    def test_document_round_trip(self) -> None:
        config = merge_autopilot_config({"prStrategy": "auto", "requiredChecks": ["lint"]})
        assert merge_autopilot_config(config.to_document()) == config

    def test_describe_strategies(self) -> None:
        assert describe_pr_strategy(PRStrategy.AUTO) == "Automatically merge when CI passes"
        assert "review label" in describe_pr_strategy("review")
        assert describe_pr_strategy("manual") == "Create PR only, no automatic actions"
        assert describe_pr_strategy("other") == "Unknown strategy"
