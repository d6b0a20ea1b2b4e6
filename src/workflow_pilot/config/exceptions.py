"""Custom exceptions for configuration."""


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """One or more config fields are invalid."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__("Invalid autopilot config: " + "; ".join(errors))
