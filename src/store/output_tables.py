"""CSV output table persistence.

This module owns the append-only dataset tables written by extraction
and reindex runs. The header row is written exactly once, when the file
is created; later writes only add rows. Replace-period writes rewrite
the rows of one reporting bucket, for sources whose provisional figures
are superseded within a period.
"""

from __future__ import annotations

import csv
from pathlib import Path
from types import TracebackType
from typing import Any, Mapping, Sequence

from core.constants import OUTPUT_TABLE_EXTENSION, SAVE_MODE_REPLACE_PERIOD
from core.errors import HarvestStoreError
from core.periods import PeriodId
from core.types import SaveMode, ValidatedRecordSet


class OutputTable:
    """One dataset CSV file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    @classmethod
    def for_dataset(cls, tables_dir: Path, dataset: str) -> "OutputTable":
        return cls(tables_dir / f"{dataset}{OUTPUT_TABLE_EXTENSION}")

    def exists(self) -> bool:
        return self.path.exists() and self.path.stat().st_size > 0

    def read_header(self) -> list[str] | None:
        """Return the header row, or None when the table is empty."""
        if not self.exists():
            return None
        with self.path.open("r", encoding="utf-8", newline="") as handle:
            return next(csv.reader(handle), None)

    def read_rows(self) -> list[dict[str, str]]:
        """Read all data rows keyed by header column."""
        if not self.exists():
            return []
        with self.path.open("r", encoding="utf-8", newline="") as handle:
            return [dict(row) for row in csv.DictReader(handle)]

    def append(self, record_set: ValidatedRecordSet) -> int:
        """Append records, writing the header only for a new table.

        Returns:
            Number of rows written.

        Raises:
            HarvestStoreError: If records carry columns the table lacks.
        """
        if not record_set.records:
            return 0
        header = self.read_header()
        if header is None:
            self.rewrite(record_set.fields, record_set.records)
            return len(record_set.records)
        _check_columns(self.path, header, record_set.fields)
        with self.path.open("a", encoding="utf-8", newline="") as handle:
            writer = csv.DictWriter(handle, fieldnames=header, lineterminator="\n")
            for record in record_set.records:
                writer.writerow(_format_row(record))
        return len(record_set.records)

    def replace_rows(self, match: Mapping[str, Any], record_set: ValidatedRecordSet) -> int:
        """Drop rows matching every ``match`` column, then add new records.

        Returns:
            Number of rows written for the record set.

        Raises:
            HarvestStoreError: If the records or the table lack a ``match``
                column, or records carry columns the table lacks.
        """
        missing_fields = sorted(set(match) - set(record_set.fields))
        if missing_fields:
            raise HarvestStoreError(
                f"Cannot replace period rows in {self.path}: dataset '{record_set.dataset}' "
                f"has no columns {', '.join(missing_fields)}. Add the period columns to "
                "the schema or use the append save mode."
            )
        header = self.read_header()
        if header is None:
            return self.append(record_set)
        _check_columns(self.path, header, record_set.fields)
        missing_keys = sorted(set(match) - set(header))
        if missing_keys:
            raise HarvestStoreError(
                f"Cannot replace period rows in {self.path}: table lacks columns "
                f"{', '.join(missing_keys)}."
            )
        expected = {key: _format_value(value) for key, value in match.items()}
        kept_rows = [
            row
            for row in self.read_rows()
            if any(row.get(key, "") != value for key, value in expected.items())
        ]
        self.rewrite(header, [*kept_rows, *record_set.records])
        return len(record_set.records)

    def rewrite(self, fields: Sequence[str], rows: Sequence[Mapping[str, Any]]) -> None:
        """Replace the table with a header and the given rows."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8", newline="") as handle:
            writer = csv.DictWriter(handle, fieldnames=list(fields), lineterminator="\n")
            writer.writeheader()
            for row in rows:
                writer.writerow(_format_row(row))

    def delete(self) -> bool:
        """Remove the table file; return whether it existed."""
        if not self.path.exists():
            return False
        self.path.unlink()
        return True


class TableWriteTransaction:
    """Snapshot table files before writes and restore them on failure."""

    def __init__(self) -> None:
        self._originals: dict[Path, bytes | None] = {}

    def __enter__(self) -> "TableWriteTransaction":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        if exc_type is not None:
            self.rollback()

    def track(self, table: OutputTable) -> OutputTable:
        """Remember a table's content before its first write."""
        if table.path not in self._originals:
            self._originals[table.path] = (
                table.path.read_bytes() if table.path.exists() else None
            )
        return table

    def rollback(self) -> None:
        for path, content in self._originals.items():
            if content is None:
                path.unlink(missing_ok=True)
            else:
                path.write_bytes(content)


def save_record_set(
    table: OutputTable,
    record_set: ValidatedRecordSet,
    save_mode: SaveMode,
    period: PeriodId,
) -> int:
    """Write one validated record set with the connector's save mode.

    Args:
        table: Destination table.
        record_set: Validated records.
        save_mode: ``append`` or ``replace-period``.
        period: Period the records belong to.

    Returns:
        Number of rows written.
    """
    if save_mode == SAVE_MODE_REPLACE_PERIOD:
        return table.replace_rows(period.replacement_key(), record_set)
    return table.append(record_set)


def _check_columns(path: Path, header: Sequence[str], fields: Sequence[str]) -> None:
    unknown = [name for name in fields if name not in header]
    if unknown:
        raise HarvestStoreError(
            f"Table {path} has no columns {', '.join(unknown)}. "
            "The dataset schema changed; reindex the source to rebuild the table."
        )


def _format_row(row: Mapping[str, Any]) -> dict[str, str]:
    return {key: _format_value(value) for key, value in row.items()}


def _format_value(value: Any) -> str:
    if value is None:
        return ""
    return str(value)
