"""SQLite persistence of generated tracks."""

from autotrack.storage.track_storage import TrackStorage

__all__ = ["TrackStorage"]
