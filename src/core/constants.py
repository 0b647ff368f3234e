"""Core constants used across harvest modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_DATA_ROOT = Path("data")
DEFAULT_SOURCES_FILE = Path("sources.yaml")
SOURCES_DIR_NAME = "sources"
DOWNLOADS_DIR_NAME = "_"
STATE_FILE_NAME = "_state.json"
SUPPLEMENT_FILE_NAME = "_supplement.json"
LEGACY_SUPPLEMENT_FILE_NAMES = ("_other_data.json",)
OUTPUT_TABLE_EXTENSION = ".csv"
IGNORED_ARTIFACT_PREFIXES = (".", "_")
DEFAULT_PUBLISHED_DAY = 1
PERIOD_SEPARATOR = "_"
QUARTER_MARKER = "Q"
SAVE_MODE_APPEND = "append"
SAVE_MODE_REPLACE_PERIOD = "replace-period"
SUPPORTED_SAVE_MODES = (SAVE_MODE_APPEND, SAVE_MODE_REPLACE_PERIOD)
SUPPORTED_PERIOD_KINDS = ("day", "month", "quarter", "year")
SOURCES_FILE_VERSION = 1
EMPTY_CELL_MARKERS = ("", "-", "—", "–", "n/a", "N/A")
