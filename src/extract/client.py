"""Python SDK for extraction workflows.

This module exposes high-level APIs for extraction runs, reindexing,
debug downloads, and state inspection over the connectors listed in the
configured sources file.
"""

from __future__ import annotations

from typing import Sequence

from core.config import HarvestConfig
from core.types import (
    ExtractionReport,
    ExtractionState,
    RawArtifact,
    ReindexReport,
    ValidatedRecordSet,
)
from extract.connector import Connector
from extract.debug import debug_download, debug_transform
from extract.engine import ExtractionEngine
from extract.registry import find_connector, load_connectors
from extract.reindex import Reindexer
from store.artifact_store import ArtifactStore


class HarvestClient:
    """Primary SDK entry point for extraction workflows."""

    def __init__(
        self,
        config: HarvestConfig | None = None,
        connectors: Sequence[Connector] | None = None,
    ) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
            connectors: Optional connectors; loaded from the sources file
                on first use when omitted.
        """
        self._config = config or HarvestConfig.from_env()
        self._store = ArtifactStore(self._config.data_root)
        self._connectors = list(connectors) if connectors is not None else None

    @property
    def connectors(self) -> list[Connector]:
        if self._connectors is None:
            self._connectors = load_connectors(self._config.sources_file)
        return self._connectors

    def connector(self, source: str) -> Connector:
        return find_connector(self.connectors, source)

    def run(self, source: str | None = None) -> list[ExtractionReport]:
        """Extract the current period of every connector, or of one source.

        Args:
            source: Optional source name restricting the run.

        Returns:
            One report per connector run.

        Raises:
            HarvestRegistryError: If the sources file or source name is invalid.
        """
        engine = ExtractionEngine(self._store, clock=self._config.current_date)
        connectors = [self.connector(source)] if source else self.connectors
        return engine.extract_all(connectors)

    def reindex(self, source: str) -> ReindexReport:
        """Rebuild the output tables of one source from its archive.

        Raises:
            HarvestTransformError: If an archived period fails to transform.
        """
        return Reindexer(self._store).reindex(self.connector(source))

    def debug_download(self, source: str, period_text: str) -> RawArtifact | None:
        connector = self.connector(source)
        return debug_download(self._store, connector, connector.parse_period(period_text))

    def debug_transform(self, source: str, period_text: str) -> list[ValidatedRecordSet]:
        connector = self.connector(source)
        return debug_transform(self._store, connector, connector.parse_period(period_text))

    def state(self, source: str) -> ExtractionState:
        return self._store.load_state(self.connector(source).settings)
