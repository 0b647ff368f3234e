"""Local file-drop connector.

Operators, or upstream jobs, drop one document per period into an inbox
directory, named after the period (``2024_03.csv``). The connector treats
a missing file as not yet published. CSV files are read with their header
row; ``.xlsx`` files are read from the first sheet, or the configured
one, with the first non-empty row as header. The period columns
(``year``, ``month``, ...) are added to every row before validation, so
the dataset schema must declare them.
"""

from __future__ import annotations

import csv
from io import StringIO
from pathlib import Path
from typing import Any, Sequence

from core.constants import DEFAULT_PUBLISHED_DAY, SAVE_MODE_APPEND
from core.errors import HarvestConfigError, HarvestStructureError
from core.periods import PeriodId
from core.types import NOT_YET_PUBLISHED, ConnectorSettings, RawArtifact, RecordSet
from extract.connector import BaseConnector, DownloadResult
from extract.registry import import_object
from layout.table_reconstruction import cluster_rows
from layout.token_sources import sheet_tokens

SUPPORTED_EXTENSIONS = ("csv", "xlsx")


class FileDropConnector(BaseConnector):
    """Connector reading period documents from an inbox directory."""

    def __init__(
        self,
        settings: ConnectorSettings,
        inbox: Path,
        dataset: str,
        schema: type[Any],
        sheet: str | None = None,
    ) -> None:
        super().__init__(settings)
        if settings.file_extension not in SUPPORTED_EXTENSIONS:
            raise HarvestConfigError(
                f"File-drop source '{settings.source}' uses unsupported extension "
                f"'{settings.file_extension}'. Supported: {', '.join(SUPPORTED_EXTENSIONS)}."
            )
        self.inbox = inbox
        self.dataset = dataset
        self.schema = schema
        self.sheet = sheet

    def inbox_path(self, period: PeriodId) -> Path:
        return self.inbox / f"{period}.{self.settings.file_extension}"

    def download(self, period: PeriodId) -> DownloadResult:
        document_path = self.inbox_path(period)
        if not document_path.exists():
            return NOT_YET_PUBLISHED
        return document_path.read_bytes()

    def transform(self, period: PeriodId, artifact: RawArtifact) -> Sequence[RecordSet]:
        if self.settings.file_extension == "xlsx":
            raw_rows = _sheet_rows(artifact.data, self.sheet)
        else:
            raw_rows = _csv_rows(artifact.data)
        period_fields = period.fields()
        rows = tuple({**row, **period_fields} for row in raw_rows)
        return [RecordSet(dataset=self.dataset, schema=self.schema, rows=rows)]


def build_connector(
    source: str,
    folders: Sequence[str],
    inbox: str,
    dataset: str,
    schema: str,
    file_extension: str = "csv",
    period_kind: str = "month",
    published_day: int = DEFAULT_PUBLISHED_DAY,
    disabled: bool = False,
    save_mode: str = SAVE_MODE_APPEND,
    sheet: str | None = None,
) -> FileDropConnector:
    """Build a file-drop connector from sources-file options.

    Args:
        source: Unique source name.
        folders: Output table folder segments.
        inbox: Directory the period documents are dropped into.
        dataset: Output table name.
        schema: ``module:Class`` reference to a ``RecordSchema`` subclass.
        file_extension: ``csv`` or ``xlsx``.
        period_kind: ``day``, ``month``, ``quarter`` or ``year``.
        published_day: Day of month the latest period becomes available.
        disabled: Skip the source during runs.
        save_mode: ``append`` or ``replace-period``.
        sheet: Optional sheet name for spreadsheet drops.

    Returns:
        Configured connector.

    Raises:
        HarvestRegistryError: If the schema reference cannot be resolved.
        HarvestConfigError: If the schema reference is not a record schema.
    """
    schema_class = import_object(schema)
    if not isinstance(schema_class, type) or not hasattr(schema_class, "model_validate"):
        raise HarvestConfigError(
            f"Schema reference '{schema}' for source '{source}' is not a pydantic model class."
        )
    settings = ConnectorSettings(
        source=source,
        folders=tuple(str(folder) for folder in folders),
        file_extension=file_extension,
        period_kind=period_kind,  # type: ignore[arg-type]
        published_day=published_day,
        disabled=disabled,
        save_mode=save_mode,  # type: ignore[arg-type]
    )
    return FileDropConnector(
        settings,
        inbox=Path(inbox).expanduser(),
        dataset=dataset,
        schema=schema_class,
        sheet=sheet,
    )


def _csv_rows(data: bytes) -> list[dict[str, str]]:
    reader = csv.DictReader(StringIO(data.decode("utf-8-sig")))
    if not reader.fieldnames:
        raise HarvestStructureError("Dropped CSV file has no header row.")
    return [
        {key: value for key, value in row.items() if key is not None}
        for row in reader
        if any((value or "").strip() for value in row.values() if isinstance(value, str))
    ]


def _sheet_rows(data: bytes, sheet: str | None) -> list[dict[str, str]]:
    rows = cluster_rows(sheet_tokens(data, sheet), y_tolerance=0.5)
    if not rows:
        raise HarvestStructureError("Dropped spreadsheet has no non-empty rows.")
    header = {int(token.x): token.text for token in rows[0]}
    records: list[dict[str, str]] = []
    for row in rows[1:]:
        record = {header[int(token.x)]: token.text for token in row if int(token.x) in header}
        if record:
            records.append(record)
    return records
