"""Custom exception hierarchy for repograph."""


class RepoGraphError(Exception):
    """Base exception for all repograph errors."""


class ConfigurationError(RepoGraphError):
    """Raised when options or budgets are invalid (e.g. negative limits)."""


class SnapshotError(RepoGraphError):
    """Raised when a graph snapshot cannot be imported."""
