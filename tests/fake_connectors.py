"""Deterministic connectors and schemas shared by tests."""

from __future__ import annotations

from datetime import date
from typing import Callable, Mapping, Sequence

from core.periods import PeriodId
from core.types import NOT_YET_PUBLISHED, ConnectorSettings, RawArtifact, RecordSet
from extract.connector import BaseConnector, DownloadResult
from validation.field_parsers import Count, Label, OptionalCount
from validation.record_schema import RecordSchema


class SalesRecord(RecordSchema):
    year: int
    month: int
    model: Label
    units: Count


class DailySalesRecord(RecordSchema):
    year: int
    month: int
    day: int
    model: Label
    units: Count


class FleetRecord(RecordSchema):
    year: int
    month: int
    fleet: OptionalCount


def sales_settings(**overrides: object) -> ConnectorSettings:
    values: dict[str, object] = {
        "source": "sales",
        "folders": ("cars", "sales"),
        "file_extension": "txt",
    }
    values.update(overrides)
    return ConnectorSettings(**values)  # type: ignore[arg-type]


def sales_document(*lines: str) -> bytes:
    """Encode ``model,units`` lines as a fake source document."""
    return "\n".join(lines).encode("utf-8")


class FakeSalesConnector(BaseConnector):
    """Connector serving documents from an in-memory mapping.

    Documents are ``model,units`` lines. A line ``fleet,<n>`` produces a
    second record set for the ``fleet`` dataset.
    """

    def __init__(
        self,
        settings: ConnectorSettings | None = None,
        documents: Mapping[str, bytes] | None = None,
        download_error: Exception | None = None,
        transform_hook: Callable[[PeriodId], None] | None = None,
    ) -> None:
        super().__init__(settings or sales_settings())
        self.documents = dict(documents or {})
        self.download_error = download_error
        self.transform_hook = transform_hook
        self.download_calls: list[str] = []

    def download(self, period: PeriodId) -> DownloadResult:
        self.download_calls.append(str(period))
        if self.download_error is not None:
            raise self.download_error
        document = self.documents.get(str(period))
        if document is None:
            return NOT_YET_PUBLISHED
        return document

    def transform(self, period: PeriodId, artifact: RawArtifact) -> Sequence[RecordSet]:
        if self.transform_hook is not None:
            self.transform_hook(period)
        sales_rows = []
        fleet_rows = []
        for line in artifact.data.decode("utf-8").splitlines():
            name, value = line.split(",", 1)
            if name == "fleet":
                fleet_rows.append({**period.fields(), "fleet": value})
            else:
                sales_rows.append({**period.fields(), "model": name, "units": value})
        schema = DailySalesRecord if "day" in period.fields() else SalesRecord
        record_sets = [RecordSet(dataset="sales", schema=schema, rows=tuple(sales_rows))]
        if fleet_rows:
            record_sets.append(
                RecordSet(dataset="fleet", schema=FleetRecord, rows=tuple(fleet_rows))
            )
        return record_sets


def build_fake_connector(source: str, folders: Sequence[str]) -> FakeSalesConnector:
    """Factory used by sources-file fixtures."""
    return FakeSalesConnector(sales_settings(source=source, folders=tuple(folders)))


STATIC_CONNECTOR = FakeSalesConnector(sales_settings(source="static"))


def fixed_clock(today: date) -> Callable[[], date]:
    return lambda: today

