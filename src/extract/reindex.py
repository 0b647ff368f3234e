"""Rebuild output tables from the raw artifact archive.

Reindexing replays every archived period of a source in chronological
order. All artifacts are transformed and validated before any table is
touched, so a bad artifact aborts the rebuild with the previous tables
intact. Extraction state is never modified.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from core.errors import HarvestStoreError, HarvestTransformError
from core.logging_config import get_logger
from core.periods import PeriodId
from core.types import ReindexReport, ValidatedRecordSet
from extract.connector import Connector
from store.artifact_store import ArtifactStore
from store.output_tables import OutputTable, TableWriteTransaction, save_record_set
from validation.record_schema import validate_record_sets

_LOGGER = get_logger(__name__)

_PERIOD_COLUMNS = ("year", "quarter", "month", "day")


class Reindexer:
    """Deterministic rebuild of one source's output tables."""

    def __init__(self, store: ArtifactStore) -> None:
        self._store = store

    def reindex(self, connector: Connector) -> ReindexReport:
        """Rebuild every output table of a connector from its artifacts.

        Args:
            connector: Connector whose archive is replayed.

        Returns:
            Replayed periods and final table row counts.

        Raises:
            HarvestTransformError: If any artifact fails to transform or validate.
            HarvestStoreError: If the archive or supplement file is unreadable.
        """
        settings = connector.settings
        artifacts = self._store.list_artifacts(settings, connector.parse_period)
        _LOGGER.info("reindex_started", source=settings.source, artifact_count=len(artifacts))
        staged: list[tuple[PeriodId, list[ValidatedRecordSet]]] = []
        for artifact in artifacts:
            try:
                record_sets = list(connector.transform(artifact.period, artifact))
                staged.append((artifact.period, validate_record_sets(record_sets)))
            except Exception as error:
                _LOGGER.error(
                    "reindex_transform_failed",
                    source=settings.source,
                    period=str(artifact.period),
                    error=str(error),
                    error_type=type(error).__name__,
                )
                if isinstance(error, HarvestTransformError):
                    raise
                raise HarvestTransformError(
                    f"Reindex of source '{settings.source}' failed on period "
                    f"{artifact.period}: {error}. Fix the connector or remove the "
                    "artifact, then reindex again. Existing tables were left unchanged."
                ) from error
        supplement = self._store.load_supplement(settings)

        cleared: set[str] = set()
        touched: dict[str, OutputTable] = {}
        with TableWriteTransaction() as transaction:
            for period, validated_sets in staged:
                for record_set in validated_sets:
                    table = self._open_table(transaction, connector, record_set.dataset, cleared)
                    touched[record_set.dataset] = table
                    save_record_set(table, record_set, settings.save_mode, period)
            for dataset, rows in supplement.items():
                table = self._open_table(transaction, connector, dataset, cleared)
                touched[dataset] = table
                merged = merge_supplement(table, rows)
                _LOGGER.info(
                    "supplement_merged", source=settings.source, dataset=dataset, row_count=merged
                )

        row_counts = {dataset: len(table.read_rows()) for dataset, table in sorted(touched.items())}
        periods = tuple(str(period) for period, _ in staged)
        _LOGGER.info(
            "reindex_completed",
            source=settings.source,
            period_count=len(periods),
            row_counts=row_counts,
        )
        return ReindexReport(source=settings.source, periods=periods, row_counts=row_counts)

    def _open_table(
        self,
        transaction: TableWriteTransaction,
        connector: Connector,
        dataset: str,
        cleared: set[str],
    ) -> OutputTable:
        table = transaction.track(self._store.table(connector.settings, dataset))
        if dataset not in cleared:
            if table.delete():
                _LOGGER.info(
                    "table_cleared", source=connector.settings.source, dataset=dataset
                )
            cleared.add(dataset)
        return table


def merge_supplement(table: OutputTable, rows: Sequence[Mapping[str, Any]]) -> int:
    """Merge curated rows into a table and re-sort it by period columns.

    Args:
        table: Destination table, possibly absent.
        rows: Supplement rows for the table's dataset.

    Returns:
        Number of supplement rows merged.

    Raises:
        HarvestStoreError: If a row carries columns the table lacks.
    """
    if not rows:
        return 0
    header = table.read_header()
    if header is None:
        header = list(dict.fromkeys(key for row in rows for key in row))
    for index, row in enumerate(rows, start=1):
        unknown = sorted(set(row) - set(header))
        if unknown:
            raise HarvestStoreError(
                f"Supplement row #{index} for {table.path.name} has columns "
                f"{', '.join(unknown)} missing from the table header."
            )
    combined: list[Mapping[str, Any]] = [*table.read_rows(), *rows]
    sort_columns = [column for column in _PERIOD_COLUMNS if column in header]
    if sort_columns:
        combined.sort(
            key=lambda row: tuple(_sort_value(row.get(column)) for column in sort_columns)
        )
    table.rewrite(header, combined)
    return len(rows)


def _sort_value(value: Any) -> int:
    if value is None or value == "":
        return 0
    try:
        return int(str(value).lstrip("Qq"))
    except ValueError as error:
        raise HarvestStoreError(
            f"Period column value {value!r} is not numeric; fix the supplement rows."
        ) from error
