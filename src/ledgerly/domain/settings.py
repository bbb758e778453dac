"""User settings backed by the settings table."""

from ledgerly.database.base import Database
from ledgerly.domain.entities import DuplicateDetectionSettings

DUPLICATE_DETECTION_ENABLED = "duplicate_detection.enabled"
DUPLICATE_DETECTION_FILE_WARNINGS = "duplicate_detection.show_file_warnings"

_TRUE = "true"
_FALSE = "false"


def _read_flag(value, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class SettingsService:
    """Reads and writes user preferences."""

    def __init__(self, db: Database):
        self.db = db

    def get_duplicate_detection(self) -> DuplicateDetectionSettings:
        """Return duplicate-file detection preferences (both on by default)."""
        defaults = DuplicateDetectionSettings()
        return DuplicateDetectionSettings(
            enabled=_read_flag(self.db.get_setting(DUPLICATE_DETECTION_ENABLED), defaults.enabled),
            show_file_warnings=_read_flag(
                self.db.get_setting(DUPLICATE_DETECTION_FILE_WARNINGS), defaults.show_file_warnings
            ),
        )

    def set_duplicate_detection(
        self, enabled: bool | None = None, show_file_warnings: bool | None = None
    ) -> DuplicateDetectionSettings:
        """Update the given preferences and return the result."""
        if enabled is not None:
            self.db.set_setting(DUPLICATE_DETECTION_ENABLED, _TRUE if enabled else _FALSE)
        if show_file_warnings is not None:
            self.db.set_setting(DUPLICATE_DETECTION_FILE_WARNINGS, _TRUE if show_file_warnings else _FALSE)
        return self.get_duplicate_detection()
