"""Unit tests for the local file-drop connector."""

from __future__ import annotations

import shutil
from datetime import date

import pytest

from core.errors import HarvestConfigError, HarvestRegistryError
from core.periods import MonthPeriod
from core.types import NOT_YET_PUBLISHED
from connectors.file_drop import build_connector
from extract.engine import ExtractionEngine
from store.artifact_store import ArtifactStore
from tests.fixture_paths import fixture_path


def _connector(inbox, **overrides):
    options = {
        "source": "drop",
        "folders": ["cars", "drop"],
        "inbox": str(inbox),
        "dataset": "sales",
        "schema": "tests.fake_connectors:SalesRecord",
    }
    options.update(overrides)
    return build_connector(**options)


def test_missing_drop_file_is_not_yet_published(tmp_path) -> None:
    """An empty inbox should mean the period is not released."""
    connector = _connector(tmp_path)

    assert connector.download(MonthPeriod(2024, 1)) is NOT_YET_PUBLISHED


def test_file_drop_extracts_csv_with_period_fields(tmp_path) -> None:
    """Dropped CSV rows should be validated with period columns added."""
    inbox = tmp_path / "inbox"
    inbox.mkdir()
    shutil.copy(fixture_path("drop/2024_01.csv"), inbox / "2024_01.csv")
    connector = _connector(inbox)
    store = ArtifactStore(tmp_path / "data")

    report = ExtractionEngine(store, clock=lambda: date(2024, 2, 3)).extract(connector)

    assert report.status == "extracted"
    assert store.table(connector.settings, "sales").read_rows() == [
        {"year": "2024", "month": "1", "model": "FORD_FOCUS", "units": "1204"},
        {"year": "2024", "month": "1", "model": "AUDI", "units": "80"},
    ]


def test_file_drop_rejects_invalid_rows(tmp_path) -> None:
    """Rows failing the schema should roll the period back."""
    inbox = tmp_path / "inbox"
    inbox.mkdir()
    shutil.copy(fixture_path("drop/bad_units.csv"), inbox / "2024_01.csv")
    connector = _connector(inbox)
    store = ArtifactStore(tmp_path / "data")

    report = ExtractionEngine(store, clock=lambda: date(2024, 2, 3)).extract(connector)

    assert report.status == "transform_failed"
    assert not store.has_artifact(connector.settings, MonthPeriod(2024, 1))


def test_build_connector_validates_options(tmp_path) -> None:
    """Bad extensions, schemas, and settings should be rejected."""
    with pytest.raises(HarvestConfigError):
        _connector(tmp_path, file_extension="pdf")
    with pytest.raises(HarvestConfigError):
        _connector(tmp_path, schema="tests.fake_connectors:sales_settings")
    with pytest.raises(HarvestRegistryError):
        _connector(tmp_path, period_kind="week")
