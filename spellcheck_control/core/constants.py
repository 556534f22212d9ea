"""
Spellcheck Control Core: Constants and Type Definitions

This module provides system-wide constants, error codes and configuration keys.
"""
from enum import IntEnum

# Version information
SPELLCHECK_CONTROL_VERSION = "1.0.0"

# Outcome returned when no enabled rule matches. Hosts ship spellcheck on, so
# falling back to True resets any "disabled" state left by an earlier decision.
DEFAULT_OUTCOME = True

# Vault root as reported by the host for top-level documents
ROOT_PATH = "/"
PATH_SEPARATOR = "/"
TAG_PREFIX = "#"
SUBTAG_SEPARATOR = "/"


class ErrorCode(IntEnum):
    """Standardized error codes for Spellcheck Control operations."""

    INVALID_INPUT = 1  # Bad rule, invalid configuration
    NOT_FOUND = 2  # File, rule index or resource doesn't exist
    PERMISSION_DENIED = 3  # Settings file not writable
    INTERNAL_ERROR = 6  # Bug in Spellcheck Control


class ConfigKey:
    """Configuration key constants."""

    ROOT = "spellcheck_control"
    SETTINGS_FILE = "spellcheck_control.settings_file"
    LOG_LEVEL = "spellcheck_control.logging.level"
    LOG_FILE = "spellcheck_control.logging.file"
    STRICT_FOLDER_BOUNDARY = "spellcheck_control.evaluation.strict_folder_boundary"
    DISCARD_STALE = "spellcheck_control.evaluation.discard_stale"


class SettingsKey:
    """Keys of the persisted settings document."""

    RULES = "rules"


DEFAULT_SETTINGS_FILE = "~/.config/spellcheck-control/settings.yaml"

# Default configuration values
DEFAULT_CONFIG = {
    ConfigKey.ROOT: {
        "settings_file": DEFAULT_SETTINGS_FILE,
        "logging": {
            "level": "INFO",
            "file": None,
        },
        "evaluation": {
            "strict_folder_boundary": False,
            "discard_stale": True,
        },
    }
}

# Persisted settings before any user edits
DEFAULT_SETTINGS = {
    SettingsKey.RULES: [],
}
