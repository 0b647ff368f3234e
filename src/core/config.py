"""Runtime configuration model for harvest.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
import os
from pathlib import Path

from core.constants import DEFAULT_DATA_ROOT, DEFAULT_SOURCES_FILE
from core.errors import HarvestConfigError


@dataclass(frozen=True)
class HarvestConfig:
    """Validated runtime configuration.

    Attributes:
        data_root: Local root directory for downloads, state, and tables.
        sources_file: YAML file listing the connectors to run.
        today: Optional fixed date used instead of the system clock.
    """

    data_root: Path
    sources_file: Path
    today: date | None = None

    @classmethod
    def from_env(cls) -> "HarvestConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            HarvestConfigError: If environment values are invalid.
        """
        data_root_value = os.getenv("HARVEST_DATA_ROOT", str(DEFAULT_DATA_ROOT))
        sources_file_value = os.getenv("HARVEST_SOURCES_FILE", str(DEFAULT_SOURCES_FILE))
        today_value = os.getenv("HARVEST_TODAY")
        return cls(
            data_root=Path(data_root_value).expanduser().resolve(),
            sources_file=Path(sources_file_value).expanduser().resolve(),
            today=parse_today(today_value) if today_value else None,
        )

    def current_date(self) -> date:
        """Return the configured reference date or the system date."""
        return self.today or date.today()


def parse_today(raw_value: str) -> date:
    """Parse a reference date override.

    Args:
        raw_value: ISO date string such as ``2024-03-15``.

    Returns:
        Parsed date.

    Raises:
        HarvestConfigError: If value is not an ISO date.
    """
    try:
        return date.fromisoformat(raw_value.strip())
    except ValueError as error:
        raise HarvestConfigError(
            "Invalid HARVEST_TODAY value: "
            f"expected ISO date YYYY-MM-DD, got '{raw_value}'. "
            "Unset HARVEST_TODAY to use the system date."
        ) from error
