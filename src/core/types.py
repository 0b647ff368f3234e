"""Shared typed models.

This module defines immutable data models used by connectors, the
extraction engine, the artifact store, and the CLI to keep interfaces
explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Mapping, Union

from pydantic import BaseModel

from core.constants import DEFAULT_PUBLISHED_DAY, SAVE_MODE_APPEND
from core.periods import PeriodId

SaveMode = Literal["append", "replace-period"]
PeriodKind = Literal["day", "month", "quarter", "year"]
ExtractionStatus = Literal[
    "disabled",
    "skipped",
    "pending",
    "download_failed",
    "transform_failed",
    "error",
    "extracted",
]


@dataclass(frozen=True)
class ConnectorSettings:
    """Static configuration shared by every connector.

    Attributes:
        source: Unique source name; names the downloads directory.
        folders: Path segments under the sources root for output tables.
        file_extension: Extension used for raw artifact files.
        period_kind: Granularity of the periods this source publishes.
        published_day: Day of month after which the latest period is out.
        disabled: Skip this connector during extraction runs.
        save_mode: How record sets are written to output tables.
    """

    source: str
    folders: tuple[str, ...]
    file_extension: str
    period_kind: PeriodKind = "month"
    published_day: int = DEFAULT_PUBLISHED_DAY
    disabled: bool = False
    save_mode: SaveMode = SAVE_MODE_APPEND


@dataclass(frozen=True)
class NotYetPublished:
    """Download outcome when the source has not released the period."""


NOT_YET_PUBLISHED = NotYetPublished()


@dataclass(frozen=True)
class RawDocument:
    """Download outcome carrying the fetched document bytes."""

    data: bytes


@dataclass(frozen=True)
class DownloadFailure:
    """Download outcome when fetching raised an error."""

    error: Exception


DownloadOutcome = Union[RawDocument, NotYetPublished, DownloadFailure]


@dataclass(frozen=True)
class RawArtifact:
    """Unmodified downloaded document kept in the archive.

    Attributes:
        period: Reporting period the document covers.
        source: Source name that produced the document.
        data: Raw document bytes.
        path: On-disk location inside the downloads directory.
    """

    period: PeriodId
    source: str
    data: bytes
    path: Path


@dataclass(frozen=True)
class ExtractionState:
    """Per-source record of downloaded and transformed periods."""

    downloaded: frozenset[str] = frozenset()
    transformed: frozenset[str] = frozenset()

    def with_downloaded(self, period: PeriodId) -> "ExtractionState":
        return ExtractionState(
            downloaded=self.downloaded | {str(period)},
            transformed=self.transformed,
        )

    def with_transformed(self, period: PeriodId) -> "ExtractionState":
        """Mark a period transformed, keeping ``transformed ⊆ downloaded``."""
        return ExtractionState(
            downloaded=self.downloaded | {str(period)},
            transformed=self.transformed | {str(period)},
        )

    def is_transformed(self, period: PeriodId) -> bool:
        return str(period) in self.transformed


@dataclass(frozen=True)
class RecordSet:
    """Unvalidated rows produced by a connector transform.

    Attributes:
        dataset: Output table name, without extension.
        schema: Strict record schema every row must satisfy.
        rows: Raw field mappings in output order.
        fields: Optional explicit column order for the output table.
    """

    dataset: str
    schema: type[BaseModel]
    rows: tuple[Mapping[str, Any], ...]
    fields: tuple[str, ...] | None = None


@dataclass(frozen=True)
class ValidatedRecordSet:
    """Schema-validated records ready to be written.

    Attributes:
        dataset: Output table name, without extension.
        records: Validated records as plain dictionaries.
        fields: Column order for the output table.
    """

    dataset: str
    records: tuple[dict[str, Any], ...]
    fields: tuple[str, ...]


@dataclass(frozen=True)
class ExtractionReport:
    """Outcome of one connector extraction.

    Attributes:
        source: Connector source name.
        status: Final status of the run.
        period: Resolved period string when available.
        datasets: Output tables written during the run.
        error: Error text for failed runs.
    """

    source: str
    status: ExtractionStatus
    period: str | None = None
    datasets: tuple[str, ...] = ()
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.status in ("download_failed", "transform_failed", "error")


@dataclass(frozen=True)
class ReindexReport:
    """Outcome of one connector reindex.

    Attributes:
        source: Connector source name.
        periods: Periods replayed, in chronological order.
        row_counts: Final row count of each rebuilt table.
    """

    source: str
    periods: tuple[str, ...]
    row_counts: Mapping[str, int] = field(default_factory=dict)
