"""Error taxonomy for track generation.

Degenerate geometry is never an error: every such case has a deterministic
fallback inside the stage that meets it.  Only the conditions below abort a
run.
"""

from __future__ import annotations


class TrackGenerationError(Exception):
    """Base class for fatal generation errors."""


class ConfigurationError(TrackGenerationError, ValueError):
    """A configuration value is missing, inconsistent or degenerate.

    Raised before any probing starts.
    """


class InsufficientDataError(TrackGenerationError, ValueError):
    """A stage did not get enough data to produce a usable result.

    Args:
        message: Human-readable explanation.
        stage: Name of the stage that detected the shortage.
    """

    def __init__(self, message: str, stage: str = "") -> None:
        super().__init__(message)
        self.stage = stage


class DependencyTimeoutError(TrackGenerationError, TimeoutError):
    """Waiting on an upstream readiness signal exceeded its bound."""
