"""Manual download and transform of a chosen period.

These helpers let an operator fetch an arbitrary period into the archive
or inspect what a connector would produce for an archived period. Neither
touches extraction state, and ``debug_transform`` never writes tables.
"""

from __future__ import annotations

from core.errors import HarvestDownloadError, HarvestStoreError
from core.logging_config import get_logger
from core.periods import PeriodId
from core.types import DownloadFailure, NotYetPublished, RawArtifact, ValidatedRecordSet
from extract.connector import Connector, fetch_document
from store.artifact_store import ArtifactStore
from validation.record_schema import validate_record_sets

_LOGGER = get_logger(__name__)


def debug_download(
    store: ArtifactStore,
    connector: Connector,
    period: PeriodId,
) -> RawArtifact | None:
    """Download one period into the archive without transforming it.

    Args:
        store: Artifact store of the data root.
        connector: Connector to download with.
        period: Period to fetch.

    Returns:
        The archived artifact, or None when the period is not yet published.

    Raises:
        HarvestStoreError: If an artifact already exists for the period.
        HarvestDownloadError: If the download raised.
    """
    settings = connector.settings
    existing_path = store.find_artifact_path(settings, period)
    if existing_path is not None:
        raise HarvestStoreError(
            f"Raw artifact for {settings.source} period {period} already exists at "
            f"{existing_path}. Delete it to download again."
        )
    outcome = fetch_document(connector, period)
    if isinstance(outcome, NotYetPublished):
        _LOGGER.info("period_not_published", source=settings.source, period=str(period))
        return None
    if isinstance(outcome, DownloadFailure):
        raise HarvestDownloadError(
            f"Download of {settings.source} period {period} failed: {outcome.error}"
        ) from outcome.error
    artifact = store.write_artifact(settings, period, outcome.data)
    _LOGGER.info(
        "debug_download_saved",
        source=settings.source,
        period=str(period),
        path=str(artifact.path),
    )
    return artifact


def debug_transform(
    store: ArtifactStore,
    connector: Connector,
    period: PeriodId,
) -> list[ValidatedRecordSet]:
    """Transform and validate an archived period without saving.

    Raises:
        HarvestStoreError: If the period has no archived artifact.
        HarvestValidationError: If a record fails schema validation.
    """
    artifact = store.read_artifact(connector.settings, period)
    record_sets = list(connector.transform(period, artifact))
    return validate_record_sets(record_sets)
