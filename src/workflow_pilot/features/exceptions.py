"""Custom exceptions for the feature backlog."""


class FeatureListError(Exception):
    """Base exception for feature list errors."""


class FeatureListNotFoundError(FeatureListError):
    """Feature list document does not exist."""


class InvalidFeatureListError(FeatureListError):
    """Feature list document could not be parsed."""
