"""Raw artifact archive and extraction state persistence.

This module isolates every filesystem path a connector touches: the
downloads directory holding one raw document per period, the JSON state
file recording downloaded and transformed periods, the optional
supplement file, and the directory holding output tables.

Layout under the data root::

    sources/<folders...>/<dataset>.csv
    sources/<folders...>/_/<source>/<period>.<ext>
    sources/<folders...>/_/<source>/_state.json
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

from core.constants import (
    DOWNLOADS_DIR_NAME,
    IGNORED_ARTIFACT_PREFIXES,
    LEGACY_SUPPLEMENT_FILE_NAMES,
    SOURCES_DIR_NAME,
    STATE_FILE_NAME,
    SUPPLEMENT_FILE_NAME,
)
from core.errors import HarvestPeriodError, HarvestStoreError
from core.logging_config import get_logger
from core.periods import PeriodId, period_type_for
from core.types import ConnectorSettings, ExtractionState, RawArtifact
from store.output_tables import OutputTable

_LOGGER = get_logger(__name__)

PeriodParser = Callable[[str], PeriodId]


class ArtifactStore:
    """Filesystem-backed archive of raw documents and source state."""

    def __init__(self, data_root: Path) -> None:
        self._sources_root = data_root / SOURCES_DIR_NAME

    def tables_dir(self, settings: ConnectorSettings) -> Path:
        return self._sources_root.joinpath(*settings.folders)

    def downloads_dir(self, settings: ConnectorSettings) -> Path:
        return self.tables_dir(settings) / DOWNLOADS_DIR_NAME / settings.source

    def table(self, settings: ConnectorSettings, dataset: str) -> OutputTable:
        return OutputTable.for_dataset(self.tables_dir(settings), dataset)

    def artifact_path(self, settings: ConnectorSettings, period: PeriodId) -> Path:
        return self.downloads_dir(settings) / f"{period}.{settings.file_extension}"

    def find_artifact_path(self, settings: ConnectorSettings, period: PeriodId) -> Path | None:
        """Locate the archived file of a period, including unpadded legacy names."""
        canonical_path = self.artifact_path(settings, period)
        if canonical_path.exists():
            return canonical_path
        for file_path in self._archived_files(settings):
            stem = _period_stem(file_path, settings)
            if stem is None:
                continue
            try:
                if type(period).parse(stem) == period:
                    return file_path
            except HarvestPeriodError:
                continue
        return None

    def has_artifact(self, settings: ConnectorSettings, period: PeriodId) -> bool:
        return self.find_artifact_path(settings, period) is not None

    def write_artifact(
        self,
        settings: ConnectorSettings,
        period: PeriodId,
        data: bytes,
    ) -> RawArtifact:
        """Persist a freshly downloaded document.

        Raises:
            HarvestStoreError: If an artifact already exists for the period.
        """
        existing_path = self.find_artifact_path(settings, period)
        if existing_path is not None:
            raise HarvestStoreError(
                f"Raw artifact already exists at {existing_path}. "
                "Delete it explicitly before downloading the period again."
            )
        artifact_path = self.artifact_path(settings, period)
        artifact_path.parent.mkdir(parents=True, exist_ok=True)
        artifact_path.write_bytes(data)
        return RawArtifact(period=period, source=settings.source, data=data, path=artifact_path)

    def read_artifact(self, settings: ConnectorSettings, period: PeriodId) -> RawArtifact:
        """Load an archived document.

        Raises:
            HarvestStoreError: If no artifact exists for the period.
        """
        artifact_path = self.find_artifact_path(settings, period)
        if artifact_path is None:
            raise HarvestStoreError(
                f"No raw artifact for period {period} in {self.downloads_dir(settings)}. "
                "Download the period before transforming it."
            )
        return RawArtifact(
            period=period,
            source=settings.source,
            data=artifact_path.read_bytes(),
            path=artifact_path,
        )

    def delete_artifact(self, artifact: RawArtifact) -> None:
        artifact.path.unlink(missing_ok=True)

    def list_artifacts(
        self,
        settings: ConnectorSettings,
        parse_period: PeriodParser,
    ) -> list[RawArtifact]:
        """Load every archived document, oldest period first.

        Files starting with ``.`` or ``_`` and files with another extension
        are ignored.

        Raises:
            HarvestStoreError: If an artifact name is not a valid period, or
                two artifacts name the same period.
        """
        artifacts: list[RawArtifact] = []
        seen: dict[str, Path] = {}
        for file_path in self._archived_files(settings):
            stem = _period_stem(file_path, settings)
            if stem is None:
                _LOGGER.warning(
                    "artifact_ignored", source=settings.source, file_name=file_path.name
                )
                continue
            try:
                period = parse_period(stem)
            except HarvestPeriodError as error:
                raise HarvestStoreError(
                    f"Cannot read period from artifact {file_path}: {error} "
                    "Rename or remove the file."
                ) from error
            previous_path = seen.setdefault(str(period), file_path)
            if previous_path != file_path:
                raise HarvestStoreError(
                    f"Artifacts {previous_path.name} and {file_path.name} both hold period "
                    f"{period} of source '{settings.source}'. Remove one of them and reindex."
                )
            artifacts.append(
                RawArtifact(
                    period=period,
                    source=settings.source,
                    data=file_path.read_bytes(),
                    path=file_path,
                )
            )
        artifacts.sort(key=lambda artifact: artifact.period.ordinal)
        return artifacts

    def load_state(self, settings: ConnectorSettings) -> ExtractionState:
        """Read the source state file, or an empty state when absent.

        Period entries are normalized to their canonical form so states
        written with unpadded names still match.
        """
        state_path = self._state_path(settings)
        if not state_path.exists():
            return ExtractionState()
        parse = period_type_for(settings.period_kind).parse
        try:
            payload = json.loads(state_path.read_text(encoding="utf-8"))
            return ExtractionState(
                downloaded=frozenset(str(parse(str(value))) for value in payload["downloaded"]),
                transformed=frozenset(
                    str(parse(str(value))) for value in payload["transformed"]
                ),
            )
        except (json.JSONDecodeError, KeyError, TypeError, HarvestPeriodError) as error:
            raise HarvestStoreError(
                f"Failed to read extraction state at {state_path}: {error}. "
                "Fix or delete the state file and retry."
            ) from error

    def save_state(self, settings: ConnectorSettings, state: ExtractionState) -> None:
        state_path = self._state_path(settings)
        state_path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "downloaded": sorted(state.downloaded),
            "transformed": sorted(state.transformed),
        }
        state_path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")

    def load_supplement(self, settings: ConnectorSettings) -> dict[str, list[dict[str, Any]]]:
        """Read manually curated rows keyed by dataset name.

        The legacy ``_other_data.json`` name is read when no
        ``_supplement.json`` exists.

        Raises:
            HarvestStoreError: If the supplement file is malformed, or both
                names are present.
        """
        downloads_dir = self.downloads_dir(settings)
        present = [
            downloads_dir / name
            for name in (SUPPLEMENT_FILE_NAME, *LEGACY_SUPPLEMENT_FILE_NAMES)
            if (downloads_dir / name).exists()
        ]
        if not present:
            return {}
        if len(present) > 1:
            raise HarvestStoreError(
                f"Found several supplement files in {downloads_dir}: "
                f"{', '.join(path.name for path in present)}. Merge them into "
                f"{SUPPLEMENT_FILE_NAME}."
            )
        supplement_path = present[0]
        try:
            payload = json.loads(supplement_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as error:
            raise HarvestStoreError(
                f"Failed to parse supplement file at {supplement_path}: {error.msg}."
            ) from error
        if not isinstance(payload, dict) or not all(
            isinstance(rows, list) and all(isinstance(row, dict) for row in rows)
            for rows in payload.values()
        ):
            raise HarvestStoreError(
                f"Invalid supplement file at {supplement_path}: expected an object "
                "mapping dataset names to lists of row objects."
            )
        return {str(dataset): list(rows) for dataset, rows in payload.items()}

    def _state_path(self, settings: ConnectorSettings) -> Path:
        return self.downloads_dir(settings) / STATE_FILE_NAME

    def _archived_files(self, settings: ConnectorSettings) -> list[Path]:
        downloads_dir = self.downloads_dir(settings)
        if not downloads_dir.exists():
            return []
        return [
            file_path
            for file_path in sorted(downloads_dir.iterdir())
            if file_path.is_file() and not file_path.name.startswith(IGNORED_ARTIFACT_PREFIXES)
        ]


def _period_stem(file_path: Path, settings: ConnectorSettings) -> str | None:
    suffix = f".{settings.file_extension}"
    if not file_path.name.endswith(suffix):
        return None
    return file_path.name[: -len(suffix)]
