"""Fill down group-identifier columns ("blank means same as above")."""

from __future__ import annotations

from collections.abc import Sequence

from sheetprep.diagnostics import Diagnostics, ensure
from sheetprep.models import Row


def last_data_row_index(rows: Sequence[Row], min_cells: int) -> int:
    """Index of the last row with at least *min_cells* non-empty cells.

    Falls back to the last row when none qualifies (``-1`` for no rows).
    """
    for i in range(len(rows) - 1, -1, -1):
        if rows[i].non_empty_count() >= min_cells:
            return i
    return len(rows) - 1


def _column_index(headers: Sequence[str], name: str) -> int:
    try:
        return list(headers).index(name) if name else -1
    except ValueError:
        return -1


def fill_down(
    headers: Sequence[str],
    rows: Sequence[Row],
    *,
    always_column: str,
    until_next_column: str,
    min_cells: int = 4,
    diagnostics: Diagnostics | None = None,
) -> tuple[Row, ...]:
    """Return *rows* with blank group cells filled from the nearest value above.

    *always_column* (the brand) carries its last value to every data row;
    *until_next_column* (the model) carries its value until the next distinct
    one appears. Existing values are never overwritten, and rows after the
    last data row (footnotes) are left alone.
    """
    always_idx = _column_index(headers, always_column)
    until_idx = _column_index(headers, until_next_column)
    if always_idx < 0 and until_idx < 0:
        return tuple(rows)

    last_data_row = last_data_row_index(rows, min_cells)
    last_seen = {always_idx: "", until_idx: ""}
    targets = [idx for idx in (always_idx, until_idx) if idx >= 0]

    filled: list[Row] = []
    for i, row in enumerate(rows):
        for idx in targets:
            if idx >= len(row):
                continue
            value = row.cell(idx).strip()
            if value:
                last_seen[idx] = value
            elif i <= last_data_row and last_seen[idx]:
                row = row.with_cell(idx, last_seen[idx])
        filled.append(row)

    ensure(diagnostics).debug(
        "fill-down",
        f"fill-down applied to {always_column!r} (col {always_idx}) and "
        f"{until_next_column!r} (col {until_idx}) through row {last_data_row}",
    )
    return tuple(filled)
