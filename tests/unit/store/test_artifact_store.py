"""Unit tests for the raw artifact archive and state persistence."""

from __future__ import annotations

import json

import pytest

from core.errors import HarvestStoreError
from core.periods import MonthPeriod
from core.types import ExtractionState
from store.artifact_store import ArtifactStore
from tests.fake_connectors import sales_settings


def test_paths_follow_sources_layout(tmp_path) -> None:
    """Artifacts and tables should live under the source folders."""
    store = ArtifactStore(tmp_path)
    settings = sales_settings()

    assert store.artifact_path(settings, MonthPeriod(2024, 2)) == (
        tmp_path / "sources" / "cars" / "sales" / "_" / "sales" / "2024_02.txt"
    )
    tables_dir = tmp_path / "sources" / "cars" / "sales"
    assert store.table(settings, "sales").path == tables_dir / "sales.csv"


def test_write_artifact_refuses_overwrite(tmp_path) -> None:
    """A second artifact for the same period should be rejected."""
    store = ArtifactStore(tmp_path)
    settings = sales_settings()
    store.write_artifact(settings, MonthPeriod(2024, 2), b"first")

    with pytest.raises(HarvestStoreError):
        store.write_artifact(settings, MonthPeriod(2024, 2), b"second")

    assert store.read_artifact(settings, MonthPeriod(2024, 2)).data == b"first"


def test_list_artifacts_sorts_and_ignores_private_files(tmp_path) -> None:
    """Listing should skip dot and underscore files and sort by period."""
    store = ArtifactStore(tmp_path)
    settings = sales_settings()
    for period in (MonthPeriod(2024, 10), MonthPeriod(2023, 12), MonthPeriod(2024, 2)):
        store.write_artifact(settings, period, b"x")
    downloads_dir = store.downloads_dir(settings)
    (downloads_dir / ".DS_Store").write_text("", encoding="utf-8")
    (downloads_dir / "_supplement.json").write_text("{}", encoding="utf-8")
    (downloads_dir / "2024_1.txt").write_bytes(b"legacy")
    (downloads_dir / "notes.md").write_text("", encoding="utf-8")

    artifacts = store.list_artifacts(settings, MonthPeriod.parse)

    assert [str(artifact.period) for artifact in artifacts] == [
        "2023_12",
        "2024_01",
        "2024_02",
        "2024_10",
    ]


def test_list_artifacts_rejects_unparseable_names(tmp_path) -> None:
    """Artifacts with a name that is not a period should fail loudly."""
    store = ArtifactStore(tmp_path)
    settings = sales_settings()
    downloads_dir = store.downloads_dir(settings)
    downloads_dir.mkdir(parents=True)
    (downloads_dir / "latest.txt").write_bytes(b"x")

    with pytest.raises(HarvestStoreError):
        store.list_artifacts(settings, MonthPeriod.parse)


def test_state_round_trips_as_sorted_lists(tmp_path) -> None:
    """State should persist as sorted JSON lists."""
    store = ArtifactStore(tmp_path)
    settings = sales_settings()
    state = (
        ExtractionState()
        .with_transformed(MonthPeriod(2024, 2))
        .with_downloaded(MonthPeriod(2024, 1))
    )

    store.save_state(settings, state)

    state_path = store.downloads_dir(settings) / "_state.json"
    payload = json.loads(state_path.read_text(encoding="utf-8"))
    assert payload == {"downloaded": ["2024_01", "2024_02"], "transformed": ["2024_02"]}
    assert store.load_state(settings) == state


def test_load_state_defaults_to_empty_and_rejects_corrupt_files(tmp_path) -> None:
    """Missing state should be empty and corrupt state should fail."""
    store = ArtifactStore(tmp_path)
    settings = sales_settings()

    assert store.load_state(settings) == ExtractionState()

    state_path = store.downloads_dir(settings) / "_state.json"
    state_path.parent.mkdir(parents=True)
    state_path.write_text("{not json", encoding="utf-8")
    with pytest.raises(HarvestStoreError):
        store.load_state(settings)


def test_load_supplement_validates_shape(tmp_path) -> None:
    """Supplement files should map dataset names to row lists."""
    store = ArtifactStore(tmp_path)
    settings = sales_settings()
    supplement_path = store.downloads_dir(settings) / "_supplement.json"
    supplement_path.parent.mkdir(parents=True)
    supplement_path.write_text(json.dumps({"sales": [{"year": 2020}]}), encoding="utf-8")

    assert store.load_supplement(settings) == {"sales": [{"year": 2020}]}

    supplement_path.write_text(json.dumps({"sales": {"year": 2020}}), encoding="utf-8")
    with pytest.raises(HarvestStoreError):
        store.load_supplement(settings)


def test_legacy_unpadded_artifact_counts_for_its_period(tmp_path) -> None:
    """An artifact stored under an unpadded name should be found and never duplicated."""
    store = ArtifactStore(tmp_path)
    settings = sales_settings()
    downloads_dir = store.downloads_dir(settings)
    downloads_dir.mkdir(parents=True)
    (downloads_dir / "2024_2.txt").write_bytes(b"legacy")
    (downloads_dir / "2024_10.txt").write_bytes(b"october")

    assert store.has_artifact(settings, MonthPeriod(2024, 2))
    assert not store.has_artifact(settings, MonthPeriod(2024, 1))
    assert store.read_artifact(settings, MonthPeriod(2024, 2)).data == b"legacy"
    with pytest.raises(HarvestStoreError):
        store.write_artifact(settings, MonthPeriod(2024, 2), b"again")
    assert not store.artifact_path(settings, MonthPeriod(2024, 2)).exists()


def test_list_artifacts_rejects_two_files_for_one_period(tmp_path) -> None:
    """Padded and unpadded artifacts of the same period should fail loudly."""
    store = ArtifactStore(tmp_path)
    settings = sales_settings()
    downloads_dir = store.downloads_dir(settings)
    downloads_dir.mkdir(parents=True)
    (downloads_dir / "2024_2.txt").write_bytes(b"legacy")
    (downloads_dir / "2024_02.txt").write_bytes(b"current")

    with pytest.raises(HarvestStoreError, match="2024_02"):
        store.list_artifacts(settings, MonthPeriod.parse)


def test_load_state_normalizes_unpadded_periods(tmp_path) -> None:
    """State written with unpadded names should match canonical periods."""
    store = ArtifactStore(tmp_path)
    settings = sales_settings()
    state_path = store.downloads_dir(settings) / "_state.json"
    state_path.parent.mkdir(parents=True)
    state_path.write_text(
        json.dumps({"downloaded": ["2024_1", "2024_2"], "transformed": ["2024_2"]}),
        encoding="utf-8",
    )

    state = store.load_state(settings)

    assert state == ExtractionState(
        downloaded=frozenset({"2024_01", "2024_02"}), transformed=frozenset({"2024_02"})
    )
    assert state.is_transformed(MonthPeriod(2024, 2))


def test_load_state_rejects_entries_that_are_not_periods(tmp_path) -> None:
    """A state entry that is not a period of the source kind should fail."""
    store = ArtifactStore(tmp_path)
    settings = sales_settings()
    state_path = store.downloads_dir(settings) / "_state.json"
    state_path.parent.mkdir(parents=True)
    state_path.write_text(
        json.dumps({"downloaded": ["latest"], "transformed": []}), encoding="utf-8"
    )

    with pytest.raises(HarvestStoreError):
        store.load_state(settings)


def test_load_supplement_reads_legacy_file_name(tmp_path) -> None:
    """Curated rows in ``_other_data.json`` should still be loaded."""
    store = ArtifactStore(tmp_path)
    settings = sales_settings()
    downloads_dir = store.downloads_dir(settings)
    downloads_dir.mkdir(parents=True)
    legacy_rows = {"sales": [{"year": 2019, "month": 5}]}
    (downloads_dir / "_other_data.json").write_text(json.dumps(legacy_rows), encoding="utf-8")

    assert store.load_supplement(settings) == legacy_rows

    (downloads_dir / "_supplement.json").write_text("{}", encoding="utf-8")
    with pytest.raises(HarvestStoreError):
        store.load_supplement(settings)
