"""Positioned token extraction from raw documents.

This module turns PDF pages and spreadsheet sheets into the positioned
tokens consumed by table reconstruction. PDF coordinates are normalized
to the page size so tolerances stay stable across page formats.
"""

from __future__ import annotations

from io import BytesIO
from typing import Any

from core.errors import HarvestDependencyError, HarvestStructureError
from layout.table_reconstruction import PositionedToken


def pdf_page_tokens(data: bytes) -> list[list[PositionedToken]]:
    """Extract words from every PDF page.

    Args:
        data: Raw PDF bytes.

    Returns:
        One token list per page, in reading order, with ``x`` and ``y``
        normalized to the ``[0, 1]`` page range.

    Raises:
        HarvestDependencyError: If pdfplumber is missing.
    """
    pdfplumber = _import_pdfplumber()
    pages: list[list[PositionedToken]] = []
    with pdfplumber.open(BytesIO(data)) as pdf:
        for page in pdf.pages:
            width = float(page.width) or 1.0
            height = float(page.height) or 1.0
            words = page.extract_words() or []
            pages.append(
                [
                    PositionedToken(
                        x=float(word["x0"]) / width,
                        y=float(word["top"]) / height,
                        text=str(word["text"]),
                    )
                    for word in words
                ]
            )
    return pages


def sheet_tokens(data: bytes, sheet_name: str | None = None) -> list[PositionedToken]:
    """Extract non-empty cells from a spreadsheet sheet.

    Cells become tokens with ``x`` set to the column index and ``y`` to
    the row index, in row-major order.

    Args:
        data: Raw ``.xlsx`` bytes.
        sheet_name: Sheet to read; the first sheet when omitted.

    Returns:
        Tokens for every non-empty cell.

    Raises:
        HarvestDependencyError: If openpyxl is missing.
        HarvestStructureError: If the named sheet does not exist.
    """
    openpyxl = _import_openpyxl()
    workbook = openpyxl.load_workbook(BytesIO(data), read_only=True, data_only=True)
    try:
        if sheet_name is None:
            sheet = workbook[workbook.sheetnames[0]]
        elif sheet_name in workbook.sheetnames:
            sheet = workbook[sheet_name]
        else:
            raise HarvestStructureError(
                f"Sheet '{sheet_name}' not found; available sheets: "
                f"{', '.join(workbook.sheetnames)}."
            )
        tokens: list[PositionedToken] = []
        for row_index, row in enumerate(sheet.iter_rows(values_only=True), 1):
            for column_index, value in enumerate(row, 1):
                text = _cell_text(value)
                if text:
                    tokens.append(PositionedToken(x=column_index, y=row_index, text=text))
        return tokens
    finally:
        workbook.close()


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _import_pdfplumber() -> Any:
    try:
        import pdfplumber
    except ImportError as error:
        raise HarvestDependencyError(
            "PDF token extraction requires pdfplumber, but it is not installed. "
            "Install pdfplumber to parse PDF sources."
        ) from error
    return pdfplumber


def _import_openpyxl() -> Any:
    try:
        import openpyxl
    except ImportError as error:
        raise HarvestDependencyError(
            "Spreadsheet token extraction requires openpyxl, but it is not installed. "
            "Install openpyxl to parse spreadsheet sources."
        ) from error
    return openpyxl
