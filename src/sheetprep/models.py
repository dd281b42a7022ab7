"""Data models shared across the package.

Core entities are frozen dataclasses over tuples: every pipeline stage
returns a new value and never mutates its input.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from numbers import Integral
from typing import Any


def _to_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return result


def _to_string_list(values: Sequence[Any] | None, field_name: str) -> list[str]:
    if values is None:
        return []
    if isinstance(values, str):
        raise TypeError(f"{field_name} must be a sequence of strings")
    normalized: list[str] = []
    for item in values:
        if not isinstance(item, str):
            raise TypeError(f"{field_name} items must be strings")
        normalized.append(item)
    return normalized


def _to_string_tuple(values: Iterable[Any], field_name: str) -> tuple[str, ...]:
    if isinstance(values, str):
        raise TypeError(f"{field_name} must be a sequence of strings")
    return tuple(_to_string_list(list(values), field_name))


# ── Grid rows ────────────────────────────────────────────────────


@dataclass(frozen=True)
class Row:
    """One sheet row: an ordered sequence of string cells.

    Indexing past either end yields ``""`` rather than raising.
    """

    cells: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "cells", _to_string_tuple(self.cells, "cells"))

    def __len__(self) -> int:
        return len(self.cells)

    def __iter__(self) -> Iterator[str]:
        return iter(self.cells)

    def cell(self, index: int) -> str:
        if 0 <= index < len(self.cells):
            return self.cells[index]
        return ""

    def non_empty_count(self) -> int:
        return sum(1 for value in self.cells if value.strip())

    def select(self, indices: Iterable[int]) -> Row:
        return Row(tuple(self.cell(i) for i in indices))

    def with_cell(self, index: int, value: str) -> Row:
        cells = list(self.cells)
        if index >= len(cells):
            cells.extend([""] * (index + 1 - len(cells)))
        cells[index] = value
        return Row(tuple(cells))


@dataclass(frozen=True)
class HeaderRange:
    """Inclusive, 0-based span of header rows within a sheet.

    A sheet with metadata on rows 0-2, labels on rows 3-7 and data from
    row 8 on is ``HeaderRange(3, 7)``.
    """

    start_row_index: int
    end_row_index: int

    def __post_init__(self) -> None:
        start = _to_non_negative_int(self.start_row_index, "start_row_index")
        end = _to_non_negative_int(self.end_row_index, "end_row_index")
        if start > end:
            raise ValueError("start_row_index must be <= end_row_index")
        object.__setattr__(self, "start_row_index", start)
        object.__setattr__(self, "end_row_index", end)

    @property
    def data_start_row_index(self) -> int:
        return self.end_row_index + 1

    def is_header_row(self, row_index: int) -> bool:
        return self.start_row_index <= row_index <= self.end_row_index

    def is_pre_header_row(self, row_index: int) -> bool:
        return row_index < self.start_row_index

    def to_dict(self) -> dict[str, int]:
        return {"start": self.start_row_index, "end": self.end_row_index}


# ── Sheets ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class Sheet:
    """A decoded sheet split into header rows and data rows.

    ``headers`` stays empty until the sheet has been processed; a processed
    sheet carries one label per column of ``rows`` and no raw header rows.
    """

    name: str
    index: int = 0
    rows: tuple[Row, ...] = ()
    raw_header_rows: tuple[Row, ...] = ()
    original_row_count: int = 0
    original_column_count: int = 0
    header_range_start: int = 0
    header_range_end: int = 0
    headers: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "rows", tuple(_as_row(r) for r in self.rows))
        object.__setattr__(
            self, "raw_header_rows", tuple(_as_row(r) for r in self.raw_header_rows)
        )
        object.__setattr__(self, "headers", _to_string_tuple(self.headers, "headers"))
        for name in ("index", "original_row_count", "original_column_count"):
            object.__setattr__(self, name, _to_non_negative_int(getattr(self, name), name))

    @property
    def header_range(self) -> HeaderRange:
        return HeaderRange(self.header_range_start, self.header_range_end)


def _as_row(value: Row | Iterable[str]) -> Row:
    if isinstance(value, Row):
        return value
    return Row(tuple(value))


@dataclass(frozen=True)
class Workbook:
    file_name: str
    sheets: tuple[Sheet, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "sheets", tuple(self.sheets))

    @property
    def worksheet_count(self) -> int:
        return len(self.sheets)


@dataclass(frozen=True)
class ResolvedColumn:
    """A surviving source column and its resolved label (mid-pipeline only)."""

    original_column_index: int
    label: str
    fill_rate: float = 0.0


# ── Reports ──────────────────────────────────────────────────────


@dataclass
class SheetReport:
    """Per-sheet QC summary.

    Contract invariant: ``dropped_columns == columns_in - columns_out``.
    """

    sheet: str = ""
    rows_in: int = 0
    rows_out: int = 0
    columns_in: int = 0
    columns_out: int = 0
    dropped_columns: int = 0
    header_range: HeaderRange | None = None
    headers: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    events: list[dict[str, Any]] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.rows_in = _to_non_negative_int(self.rows_in, "rows_in")
        self.rows_out = _to_non_negative_int(self.rows_out, "rows_out")
        self.columns_in = _to_non_negative_int(self.columns_in, "columns_in")
        self.columns_out = _to_non_negative_int(self.columns_out, "columns_out")
        self.dropped_columns = _to_non_negative_int(self.dropped_columns, "dropped_columns")
        self.headers = _to_string_list(self.headers, "headers")
        self.warnings = _to_string_list(self.warnings, "warnings")
        if self.columns_out > self.columns_in:
            raise ValueError("columns_out must be <= columns_in")
        if self.dropped_columns != self.columns_in - self.columns_out:
            raise ValueError("dropped_columns must equal columns_in - columns_out")

    def to_dict(self) -> dict[str, Any]:
        return {
            "sheet": self.sheet,
            "rows_in": self.rows_in,
            "rows_out": self.rows_out,
            "columns_in": self.columns_in,
            "columns_out": self.columns_out,
            "dropped_columns": self.dropped_columns,
            "header_range": self.header_range.to_dict() if self.header_range else None,
            "headers": list(self.headers),
            "warnings": list(self.warnings),
            "events": [dict(event) for event in self.events],
        }


@dataclass
class RunReport:
    """QC report for one workbook, written as ``qc_report.json``."""

    file_name: str = ""
    sheets: list[SheetReport] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.warnings = _to_string_list(self.warnings, "warnings")

    @property
    def rows_in(self) -> int:
        return sum(s.rows_in for s in self.sheets)

    @property
    def rows_out(self) -> int:
        return sum(s.rows_out for s in self.sheets)

    def all_warnings(self) -> list[str]:
        merged = list(self.warnings)
        for sheet in self.sheets:
            merged.extend(f"[{sheet.sheet}] {w}" for w in sheet.warnings)
        return merged

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_name": self.file_name,
            "rows_in": self.rows_in,
            "rows_out": self.rows_out,
            "sheets": [s.to_dict() for s in self.sheets],
            "warnings": list(self.warnings),
        }


@dataclass
class RunManifest:
    """Audit-trail manifest for a single CLI run."""

    tool: str = "sheetprep"
    version: str = ""
    run_id: str = ""
    input_path: str = ""
    output_dir: str = ""
    created_at_utc: str = ""
    sheet_count: int = 0
    rows_in: int = 0
    rows_out: int = 0
    sha256: str = ""
    status: str = "success"
    error_code: int | None = None
    error_message: str = ""

    def __post_init__(self) -> None:
        self.sheet_count = _to_non_negative_int(self.sheet_count, "sheet_count")
        self.rows_in = _to_non_negative_int(self.rows_in, "rows_in")
        self.rows_out = _to_non_negative_int(self.rows_out, "rows_out")
        if self.status not in {"success", "failed"}:
            raise ValueError(f"status must be 'success' or 'failed', got {self.status!r}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool,
            "version": self.version,
            "run_id": self.run_id,
            "input_path": self.input_path,
            "output_dir": self.output_dir,
            "created_at_utc": self.created_at_utc,
            "sheet_count": self.sheet_count,
            "rows_in": self.rows_in,
            "rows_out": self.rows_out,
            "sha256": self.sha256,
            "status": self.status,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }
