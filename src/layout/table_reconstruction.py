"""Positional table reconstruction.

This module rebuilds 2-D tables from flat sequences of positioned text
tokens extracted from PDFs, spreadsheets, or OCR output. All functions
are pure: they never read documents and never mutate their inputs.

Typical connector usage::

    layout = TableLayout(
        start=Sentinel("Make", occurrence=2),
        end=Sentinel("TOTAL", match="prefix"),
        y_tolerance=0.22,
        columns=3,
    )
    rows = reconstruct_table(tokens, layout)
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal, Sequence

from core.errors import HarvestConfigError, HarvestStructureError

SentinelMatch = Literal["exact", "prefix", "suffix"]


@dataclass(frozen=True)
class PositionedToken:
    """One text fragment with its page coordinates."""

    x: float
    y: float
    text: str


@dataclass(frozen=True)
class Sentinel:
    """Marker text locating a table boundary.

    Attributes:
        text: Marker text to look for.
        match: Compare the whole token text, its prefix, or its suffix.
        occurrence: One-based occurrence to use when the marker repeats.
    """

    text: str
    match: SentinelMatch = "exact"
    occurrence: int = 1

    def matches(self, token_text: str) -> bool:
        candidate = token_text.strip()
        if self.match == "prefix":
            return candidate.startswith(self.text)
        if self.match == "suffix":
            return candidate.endswith(self.text)
        return candidate == self.text


@dataclass(frozen=True)
class TableLayout:
    """Reconstruction parameters tuned per source document.

    Attributes:
        start: Optional sentinel preceding the first table cell.
        end: Optional sentinel following the last table cell.
        y_tolerance: Row clustering tolerance; ignored with ``stride``.
        x_tolerance: Optional tolerance for re-joining split cells.
        stride: Fixed cell count per row when rows have no y gaps.
        columns: Expected cells per row; other rows are discarded.
        min_x: Optional lower x bound for tokens kept in the table.
        max_x: Optional upper x bound for tokens kept in the table.
    """

    start: Sentinel | None = None
    end: Sentinel | None = None
    y_tolerance: float = 0.05
    x_tolerance: float | None = None
    stride: int | None = None
    columns: int | None = None
    min_x: float | None = None
    max_x: float | None = None


def find_sentinel(
    tokens: Sequence[PositionedToken],
    sentinel: Sentinel,
    start_index: int = 0,
) -> int:
    """Return the index of a sentinel token.

    Args:
        tokens: Tokens in document order.
        sentinel: Marker to locate.
        start_index: First index to inspect.

    Returns:
        Index of the requested sentinel occurrence.

    Raises:
        HarvestStructureError: If the sentinel occurrence is absent.
    """
    seen = 0
    for index in range(start_index, len(tokens)):
        if sentinel.matches(tokens[index].text):
            seen += 1
            if seen == sentinel.occurrence:
                return index
    raise HarvestStructureError(
        f"Sentinel '{sentinel.text}' ({sentinel.match}, occurrence {sentinel.occurrence}) "
        "not found; the document layout has changed."
    )


def trim_between(
    tokens: Sequence[PositionedToken],
    start: Sentinel | None,
    end: Sentinel | None,
) -> list[PositionedToken]:
    """Keep the tokens strictly between two sentinels.

    Either sentinel may be ``None`` to leave that side open. The end
    sentinel is searched after the start sentinel.

    Raises:
        HarvestStructureError: If a given sentinel is absent.
    """
    first = 0
    if start is not None:
        first = find_sentinel(tokens, start) + 1
    last = len(tokens)
    if end is not None:
        last = find_sentinel(tokens, end, start_index=first)
    return list(tokens[first:last])


def cluster_rows(
    tokens: Sequence[PositionedToken],
    y_tolerance: float,
) -> list[list[PositionedToken]]:
    """Group tokens into rows by vertical proximity.

    A token joins the first row whose anchor token (the first token
    assigned to it) lies within ``y_tolerance``; otherwise it starts a new
    row. Rows are returned top to bottom with cells sorted left to right.

    Raises:
        HarvestConfigError: If ``y_tolerance`` is not positive.
    """
    if y_tolerance <= 0:
        raise HarvestConfigError(f"y_tolerance must be positive, got {y_tolerance}.")
    rows: list[list[PositionedToken]] = []
    for token in tokens:
        for row in rows:
            if abs(row[0].y - token.y) < y_tolerance:
                row.append(token)
                break
        else:
            rows.append([token])
    rows.sort(key=lambda row: row[0].y)
    return [sorted(row, key=lambda token: token.x) for row in rows]


def merge_adjacent_cells(
    row: Sequence[PositionedToken],
    x_tolerance: float,
    separator: str = "",
) -> list[PositionedToken]:
    """Re-join labels split into several tokens on the same row.

    A token within ``x_tolerance`` of an already kept cell is appended to
    that cell's text and the cell moves to the token's x, so chains of
    fragments collapse into one cell.
    """
    merged: list[PositionedToken] = []
    for token in row:
        for index, cell in enumerate(merged):
            if abs(cell.x - token.x) < x_tolerance:
                merged[index] = replace(
                    cell, x=token.x, text=f"{cell.text}{separator}{token.text}"
                )
                break
        else:
            merged.append(token)
    return merged


def chunk_cells(tokens: Sequence[PositionedToken], stride: int) -> list[list[PositionedToken]]:
    """Split a run of cell tokens into rows of ``stride`` cells.

    A trailing group shorter than ``stride`` is dropped as noise.

    Raises:
        HarvestConfigError: If ``stride`` is not positive.
    """
    if stride <= 0:
        raise HarvestConfigError(f"stride must be positive, got {stride}.")
    return [
        list(tokens[index : index + stride])
        for index in range(0, len(tokens) - stride + 1, stride)
    ]


def keep_rows_with_width(
    rows: Sequence[Sequence[PositionedToken]],
    columns: int,
) -> list[list[PositionedToken]]:
    """Discard headers, footnotes, and totals that lack the column count."""
    return [list(row) for row in rows if len(row) == columns]


def row_texts(rows: Sequence[Sequence[PositionedToken]]) -> list[list[str]]:
    return [[token.text.strip() for token in row] for row in rows]


def reconstruct_table(
    tokens: Sequence[PositionedToken],
    layout: TableLayout,
) -> list[list[str]]:
    """Rebuild table rows from positioned tokens.

    Args:
        tokens: Tokens in document order.
        layout: Source-specific reconstruction parameters.

    Returns:
        Ordered rows of cell texts.

    Raises:
        HarvestStructureError: If a layout sentinel is absent.
    """
    cells = trim_between(tokens, layout.start, layout.end)
    cells = [token for token in cells if _within_x_bounds(token, layout)]
    if layout.stride is not None:
        rows = chunk_cells(cells, layout.stride)
    else:
        rows = cluster_rows(cells, layout.y_tolerance)
    if layout.x_tolerance is not None:
        rows = [merge_adjacent_cells(row, layout.x_tolerance) for row in rows]
    if layout.columns is not None:
        rows = keep_rows_with_width(rows, layout.columns)
    return row_texts(rows)


def _within_x_bounds(token: PositionedToken, layout: TableLayout) -> bool:
    if layout.min_x is not None and token.x < layout.min_x:
        return False
    if layout.max_x is not None and token.x > layout.max_x:
        return False
    return True
