"""Config - Autopilot policy and validation."""

from workflow_pilot.config.autopilot import (
    DEFAULT_AUTOPILOT_CONFIG,
    DEFAULT_TIMEOUT_SECONDS,
    AutopilotConfig,
    PRStrategy,
    describe_pr_strategy,
    generate_worker_branch,
    load_autopilot_config,
    merge_autopilot_config,
    parse_timeout,
    validate_autopilot_config,
)
from workflow_pilot.config.exceptions import ConfigError, ConfigValidationError

__all__ = [
    "DEFAULT_AUTOPILOT_CONFIG",
    "DEFAULT_TIMEOUT_SECONDS",
    "AutopilotConfig",
    "ConfigError",
    "ConfigValidationError",
    "PRStrategy",
    "describe_pr_strategy",
    "generate_worker_branch",
    "load_autopilot_config",
    "merge_autopilot_config",
    "parse_timeout",
    "validate_autopilot_config",
]
