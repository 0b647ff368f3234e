"""Unit tests for spreadsheet token extraction."""

from __future__ import annotations

from io import BytesIO

import pytest
from openpyxl import Workbook

from core.errors import HarvestStructureError
from core.periods import MonthPeriod
from core.types import RawArtifact
from connectors.file_drop import build_connector
from layout.token_sources import sheet_tokens


def _workbook_bytes(rows: list[list[object]], title: str = "Sales") -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = title
    for row in rows:
        sheet.append(row)
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def test_sheet_tokens_use_column_and_row_indexes() -> None:
    """Cells should become tokens positioned by column and row index."""
    data = _workbook_bytes([["model", "units"], ["Ford", 120.0], [None, 80]])

    tokens = sheet_tokens(data)

    assert [(token.x, token.y, token.text) for token in tokens] == [
        (1, 1, "model"),
        (2, 1, "units"),
        (1, 2, "Ford"),
        (2, 2, "120"),
        (2, 3, "80"),
    ]


def test_sheet_tokens_reject_unknown_sheet() -> None:
    """Requesting a missing sheet should signal a layout change."""
    with pytest.raises(HarvestStructureError):
        sheet_tokens(_workbook_bytes([["a"]]), sheet_name="Totals")


def test_file_drop_reads_spreadsheet_rows(tmp_path) -> None:
    """Spreadsheet drops should map cells to header columns."""
    connector = build_connector(
        source="sheet",
        folders=["cars"],
        inbox=str(tmp_path),
        dataset="sales",
        schema="tests.fake_connectors:SalesRecord",
        file_extension="xlsx",
        sheet="Sales",
    )
    data = _workbook_bytes([["model", "units"], ["Land Rover", "1.050"], ["Kia", 12]])
    artifact = RawArtifact(MonthPeriod(2024, 1), "sheet", data, tmp_path / "2024_01.xlsx")

    record_sets = connector.transform(MonthPeriod(2024, 1), artifact)

    assert record_sets[0].rows == (
        {"model": "Land Rover", "units": "1.050", "year": 2024, "month": 1},
        {"model": "Kia", "units": "12", "year": 2024, "month": 1},
    )
