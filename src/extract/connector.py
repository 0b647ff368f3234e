"""Connector contract.

A connector is the source-specific collaborator the engine drives. It
resolves which period should be published next, fetches the raw document
for a period, and turns an archived document into record sets. Connectors
implement the ``Connector`` protocol directly; ``BaseConnector`` is an
optional helper that derives period handling from ``ConnectorSettings``.
"""

from __future__ import annotations

from datetime import date
from typing import Protocol, Sequence, Union, runtime_checkable

from core.constants import SUPPORTED_PERIOD_KINDS, SUPPORTED_SAVE_MODES
from core.errors import HarvestDownloadError, HarvestRegistryError
from core.periods import PeriodId, period_type_for
from core.types import (
    ConnectorSettings,
    DownloadFailure,
    DownloadOutcome,
    NotYetPublished,
    RawArtifact,
    RawDocument,
    RecordSet,
)

DownloadResult = Union[bytes, NotYetPublished]


@runtime_checkable
class Connector(Protocol):
    """Capabilities every source connector provides."""

    settings: ConnectorSettings

    def resolve_period(self, today: date) -> PeriodId:
        """Return the period the source should have published by ``today``."""
        ...

    def parse_period(self, text: str) -> PeriodId:
        """Parse an artifact filename stem back into a period."""
        ...

    def download(self, period: PeriodId) -> DownloadResult:
        """Fetch the raw document, or ``NOT_YET_PUBLISHED``; raise on failure."""
        ...

    def transform(self, period: PeriodId, artifact: RawArtifact) -> Sequence[RecordSet]:
        """Turn an archived document into record sets."""
        ...


class BaseConnector:
    """Connector helper resolving periods from its settings."""

    def __init__(self, settings: ConnectorSettings) -> None:
        validate_settings(settings)
        self.settings = settings

    def resolve_period(self, today: date) -> PeriodId:
        period_type = period_type_for(self.settings.period_kind)
        return period_type.resolve_current(today, self.settings.published_day)

    def parse_period(self, text: str) -> PeriodId:
        return period_type_for(self.settings.period_kind).parse(text)

    def download(self, period: PeriodId) -> DownloadResult:
        raise NotImplementedError

    def transform(self, period: PeriodId, artifact: RawArtifact) -> Sequence[RecordSet]:
        raise NotImplementedError


def validate_settings(settings: ConnectorSettings) -> None:
    """Check connector settings for values the store cannot handle.

    Raises:
        HarvestRegistryError: If any setting is invalid.
    """
    problems: list[str] = []
    if not settings.source or settings.source.startswith((".", "_")):
        problems.append("source must be non-empty and not start with '.' or '_'")
    if not settings.folders or any(not folder for folder in settings.folders):
        problems.append("folders must be a non-empty list of non-empty names")
    if not settings.file_extension or settings.file_extension.startswith("."):
        problems.append("file_extension must be non-empty and given without a dot")
    if settings.period_kind not in SUPPORTED_PERIOD_KINDS:
        problems.append(f"period_kind must be one of {', '.join(SUPPORTED_PERIOD_KINDS)}")
    if not 1 <= settings.published_day <= 31:
        problems.append("published_day must be between 1 and 31")
    if settings.save_mode not in SUPPORTED_SAVE_MODES:
        problems.append(f"save_mode must be one of {', '.join(SUPPORTED_SAVE_MODES)}")
    if problems:
        raise HarvestRegistryError(
            f"Invalid settings for source '{settings.source}': {'; '.join(problems)}."
        )


def fetch_document(connector: Connector, period: PeriodId) -> DownloadOutcome:
    """Run a connector download and classify its result.

    Args:
        connector: Connector to call.
        period: Period to download.

    Returns:
        ``RawDocument``, ``NotYetPublished``, or ``DownloadFailure``.
    """
    try:
        result = connector.download(period)
    except Exception as error:
        return DownloadFailure(error)
    if isinstance(result, NotYetPublished):
        return result
    if not isinstance(result, (bytes, bytearray)):
        return DownloadFailure(
            HarvestDownloadError(
                f"Connector '{connector.settings.source}' returned "
                f"{type(result).__name__} from download; expected bytes or NOT_YET_PUBLISHED."
            )
        )
    return RawDocument(bytes(result))
