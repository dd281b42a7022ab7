"""Header range detection and header/data row splitting."""

from __future__ import annotations

from collections.abc import Sequence, Set

from sheetprep.config import PipelineConfig
from sheetprep.diagnostics import Diagnostics, ensure
from sheetprep.grid import Grid
from sheetprep.models import HeaderRange, Row, Sheet

_FALLBACK_RANGE = HeaderRange(0, 0)


def find_marker_row(rows: Sequence[Row], marker: str) -> int | None:
    """Return the first row index holding a cell equal to *marker* (trimmed)."""
    for row_index, row in enumerate(rows):
        for value in row:
            if value.strip() == marker:
                return row_index
    return None


def _find_range_start(rows: Sequence[Row], marker_row: int, min_cells: int) -> int:
    # Rows too sparse to be labels are pre-header metadata (title, units, notes).
    for i in range(marker_row - 1, -1, -1):
        if rows[i].non_empty_count() < min_cells:
            return i + 1
    return 0


def _find_range_end(
    rows: Sequence[Row],
    marker_row: int,
    key_names: Set[str],
    diagnostics: Diagnostics,
) -> int:
    if not key_names:
        diagnostics.debug(
            "range-end-marker",
            f"no key names configured, header range ends at marker row {marker_row}",
        )
        return marker_row

    for i in range(marker_row + 1, len(rows)):
        first = rows[i].cell(0).strip()
        if first in key_names:
            diagnostics.debug(
                "range-end-key-name",
                f"key name {first!r} at row {i}, header range ends at row {i - 1}",
            )
            return i - 1

    diagnostics.warn(
        "no-key-name-row",
        f"no known key name found below marker row {marker_row}; "
        "using the marker row as the last header row",
    )
    return marker_row


def detect_header_range(
    rows: Sequence[Row],
    marker: str,
    key_names: Set[str] = frozenset(),
    *,
    min_header_cells: int = 3,
    diagnostics: Diagnostics | None = None,
) -> HeaderRange | None:
    """Locate the header block anchored on *marker*.

    Returns ``None`` when the marker never appears; callers fall back to a
    single header row at index 0.
    """
    diag = ensure(diagnostics)
    marker_row = find_marker_row(rows, marker)
    if marker_row is None:
        diag.warn(
            "header-detection-failed",
            f"could not find {marker!r}; header range detection failed",
        )
        return None

    start = _find_range_start(rows, marker_row, min_header_cells)
    end = _find_range_end(rows, marker_row, key_names, diag)
    header_range = HeaderRange(start, end)
    diag.info(
        "header-range",
        f"header rows {start}-{end}, data starts at row {header_range.data_start_row_index}",
    )
    return header_range


def _check_data_start(
    grid: Grid, header_range: HeaderRange, key_names: Set[str], diagnostics: Diagnostics
) -> None:
    if not key_names:
        return
    data_start = header_range.data_start_row_index
    if data_start >= grid.row_count:
        diagnostics.warn(
            "unexpected-data-start", f"no data row found at expected start index {data_start}"
        )
        return
    first = grid.raw_row(data_start).cell(0).strip()
    if first not in key_names:
        diagnostics.warn(
            "unexpected-data-start",
            f"first data row {data_start} starts with {first!r}, which is not a known "
            "key name; header detection may be off",
        )


def build_sheet(
    name: str,
    index: int,
    grid: Grid,
    *,
    key_names: Set[str] = frozenset(),
    config: PipelineConfig | None = None,
    diagnostics: Diagnostics | None = None,
) -> Sheet:
    """Split *grid* into header rows and data rows around the detected range."""
    config = config or PipelineConfig()
    diag = ensure(diagnostics, name)

    header_range = detect_header_range(
        grid.rows,
        config.key_label,
        key_names,
        min_header_cells=config.min_header_cells,
        diagnostics=diag,
    )
    if header_range is None:
        diag.warn("header-fallback", "falling back to row 0 as the only header row")
        header_range = _FALLBACK_RANGE
    else:
        _check_data_start(grid, header_range, key_names, diag)

    header_rows: list[Row] = []
    data_rows: list[Row] = []
    for row_index in range(grid.row_count):
        if header_range.is_pre_header_row(row_index):
            continue
        if header_range.is_header_row(row_index):
            header_rows.append(grid.row(row_index))
        else:
            data_rows.append(grid.row(row_index))

    column_count = max((len(r) for r in header_rows), default=0)
    diag.debug(
        "sheet-split",
        f"{len(header_rows)} header row(s), {column_count} column(s), {len(data_rows)} data row(s)",
    )
    return Sheet(
        name=name,
        index=index,
        rows=tuple(data_rows),
        raw_header_rows=tuple(header_rows),
        original_row_count=grid.row_count,
        original_column_count=column_count,
        header_range_start=header_range.start_row_index,
        header_range_end=header_range.end_row_index,
    )
