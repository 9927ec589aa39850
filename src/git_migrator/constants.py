"""Global constants and path definitions for Git Migrator.

This module defines the filesystem layout (adhering to XDG standards where
applicable), the application identifier, and the formats shared with the
`git` command-line tool.
"""

import os
from pathlib import Path

# --- Identity ---
APP_NAME = "git-migrator"
"""str: The human-readable application name, also used as the logger name."""

# --- Paths ---
_XDG_STATE = os.environ.get("XDG_STATE_HOME")
_BASE_STATE = Path(_XDG_STATE) if _XDG_STATE else Path.home() / ".local/state"

STATE_DIR = _BASE_STATE / "git-migrator"
"""Path: The directory for runtime state data (logs)."""

LOG_FILE = STATE_DIR / "migrator.log"
"""Path: The file path for the rotating migration log."""

CONFIG_DIR: Path = Path.home() / ".config/git-migrator"
"""Path: The directory for user configuration files."""

CONFIG_FILE: Path = CONFIG_DIR / "config.toml"
"""Path: The global configuration file path."""

LOCAL_CONFIG_NAME = "migrator.toml"
"""str: Per-repository configuration file looked up in the destination."""

PYPROJECT_SECTION = "tool.git-migrator"
"""str: The pyproject.toml table holding per-repository configuration."""

# --- Git / Marker Constants ---
FIELD_SEPARATOR = "|"
"""str: Separates fields of a single `git log` output line."""

GLOBAL_ID_SEPARATOR = "-"
"""str: Joins the path hash and the origin commit hash into a global identifier."""

HISTORY_FORMAT = f"%H{FIELD_SEPARATOR}%at"
"""str: `git log` pretty format used when reading an origin repository."""

MARKER_FORMAT = f"%H{FIELD_SEPARATOR}%at{FIELD_SEPARATOR}%s"
"""str: `git log` pretty format used when reading destination markers."""

EMPTY_HISTORY_FRAGMENTS = (
    "your current branch",
    "does not have any commits yet",
)
"""
tuple[str, ...]: Substrings that together identify git's diagnostic for a
branch with no commits. Treated as an empty history, not a failure.
"""
