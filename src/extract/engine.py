"""Incremental extraction orchestration.

This module runs one connector through resolve, download, archive,
transform, validate, and save. A period is handled at most once per
source: the raw artifact and the ``transformed`` state mark it done.
When transform, validation, or saving fails, the just-downloaded
artifact and any touched output table are restored so the period is
retried cleanly on the next run.
"""

from __future__ import annotations

from datetime import date
from typing import Callable, Iterable

from core.logging_config import get_logger
from core.periods import PeriodId
from core.types import (
    DownloadFailure,
    ExtractionReport,
    ExtractionState,
    NotYetPublished,
    RawArtifact,
)
from extract.connector import Connector, fetch_document
from store.artifact_store import ArtifactStore
from store.output_tables import TableWriteTransaction, save_record_set
from validation.record_schema import validate_record_sets

_LOGGER = get_logger(__name__)


class ExtractionEngine:
    """Sequential, failure-isolating extraction runner."""

    def __init__(
        self,
        store: ArtifactStore,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self._store = store
        self._clock = clock

    def extract_all(self, connectors: Iterable[Connector]) -> list[ExtractionReport]:
        """Extract every connector in order, isolating failures.

        Args:
            connectors: Connectors to run.

        Returns:
            One report per connector.
        """
        reports: list[ExtractionReport] = []
        for connector in connectors:
            try:
                report = self.extract(connector)
            except Exception as error:
                _LOGGER.error(
                    "extraction_error",
                    source=connector.settings.source,
                    error=str(error),
                    error_type=type(error).__name__,
                )
                report = ExtractionReport(
                    source=connector.settings.source, status="error", error=str(error)
                )
            reports.append(report)
        return reports

    def extract(self, connector: Connector) -> ExtractionReport:
        """Extract the current period of one connector.

        Args:
            connector: Connector to run.

        Returns:
            Report describing what happened.

        Raises:
            HarvestStoreError: If the source state file is unreadable.
        """
        settings = connector.settings
        if settings.disabled:
            _LOGGER.info("extractor_disabled", source=settings.source)
            return ExtractionReport(source=settings.source, status="disabled")
        _LOGGER.info("extractor_started", source=settings.source, folders=list(settings.folders))
        try:
            period = connector.resolve_period(self._clock())
        except Exception as error:
            _log_failure("period_resolution_failed", settings.source, None, error)
            return ExtractionReport(
                source=settings.source, status="download_failed", error=str(error)
            )
        state = self._store.load_state(settings)
        report, _ = self.extract_period(connector, period, state)
        return report

    def extract_period(
        self,
        connector: Connector,
        period: PeriodId,
        state: ExtractionState,
    ) -> tuple[ExtractionReport, ExtractionState]:
        """Extract one period given the current source state.

        Args:
            connector: Connector to run.
            period: Period to extract.
            state: State loaded at the start of the run.

        Returns:
            The run report and the resulting state. The state is persisted
            only when the period was fully extracted.
        """
        settings = connector.settings
        period_text = str(period)
        if state.is_transformed(period) or self._store.has_artifact(settings, period):
            _LOGGER.info("period_already_extracted", source=settings.source, period=period_text)
            return ExtractionReport(settings.source, "skipped", period_text), state

        outcome = fetch_document(connector, period)
        if isinstance(outcome, NotYetPublished):
            _LOGGER.info("period_not_published", source=settings.source, period=period_text)
            return ExtractionReport(settings.source, "pending", period_text), state
        if isinstance(outcome, DownloadFailure):
            _log_failure("download_failed", settings.source, period_text, outcome.error)
            return (
                ExtractionReport(
                    settings.source, "download_failed", period_text, error=str(outcome.error)
                ),
                state,
            )

        artifact = self._store.write_artifact(settings, period, outcome.data)
        _LOGGER.info(
            "artifact_saved",
            source=settings.source,
            period=period_text,
            path=str(artifact.path),
            size_bytes=len(outcome.data),
        )
        try:
            datasets, extracted_state = self._transform_and_save(connector, artifact, state)
        except Exception as error:
            self._store.delete_artifact(artifact)
            _log_failure("transform_failed", settings.source, period_text, error)
            _LOGGER.info("artifact_rolled_back", source=settings.source, period=period_text)
            return (
                ExtractionReport(
                    settings.source, "transform_failed", period_text, error=str(error)
                ),
                state,
            )
        report = ExtractionReport(settings.source, "extracted", period_text, datasets)
        _LOGGER.info(
            "extraction_completed",
            source=settings.source,
            period=period_text,
            datasets=list(datasets),
        )
        return report, extracted_state

    def _transform_and_save(
        self,
        connector: Connector,
        artifact: RawArtifact,
        state: ExtractionState,
    ) -> tuple[tuple[str, ...], ExtractionState]:
        settings = connector.settings
        record_sets = list(connector.transform(artifact.period, artifact))
        validated_sets = validate_record_sets(record_sets)
        with TableWriteTransaction() as transaction:
            for record_set in validated_sets:
                table = transaction.track(self._store.table(settings, record_set.dataset))
                row_count = save_record_set(
                    table, record_set, settings.save_mode, artifact.period
                )
                _LOGGER.info(
                    "record_set_saved",
                    source=settings.source,
                    period=str(artifact.period),
                    dataset=record_set.dataset,
                    row_count=row_count,
                    save_mode=settings.save_mode,
                )
            extracted_state = state.with_downloaded(artifact.period).with_transformed(
                artifact.period
            )
            self._store.save_state(settings, extracted_state)
        datasets = tuple(dict.fromkeys(record_set.dataset for record_set in validated_sets))
        return datasets, extracted_state


def _log_failure(event: str, source: str, period: str | None, error: Exception) -> None:
    _LOGGER.error(
        event,
        source=source,
        period=period,
        error=str(error),
        error_type=type(error).__name__,
    )
