"""I/O helpers — decode workbooks, load lookup tables, write JSON artifacts."""

from __future__ import annotations

import json
import logging
import math
import zipfile
from collections.abc import Mapping
from datetime import date, datetime, time
from pathlib import Path
from types import MappingProxyType
from typing import Any

import pandas as pd
import xlrd
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from sheetprep.grid import Grid, MergedRange
from sheetprep.models import Workbook

logger = logging.getLogger(__name__)

XLSX_SUFFIXES = (".xlsx", ".xlsm", ".xltx", ".xltm")
LOOKUP_ENCODINGS = ("utf-8-sig", "utf-8", "cp932")

# ── Decoding ─────────────────────────────────────────────────────


def display_text(value: Any) -> str:
    """Render a decoded cell value the way a spreadsheet shows it."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, datetime):
        if value.time() == time(0):
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, (date, time)):
        return value.isoformat()
    return str(value)


def _trim_trailing_blanks(values: list[str]) -> list[str]:
    end = len(values)
    while end and not values[end - 1]:
        end -= 1
    return values[:end]


def _xls_cell_text(cell: Any, datemode: int) -> str:
    if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK, xlrd.XL_CELL_ERROR):
        return ""
    if cell.ctype == xlrd.XL_CELL_DATE:
        try:
            return display_text(xlrd.xldate_as_datetime(cell.value, datemode))
        except (ValueError, OverflowError):
            return display_text(cell.value)
    if cell.ctype == xlrd.XL_CELL_BOOLEAN:
        return display_text(bool(cell.value))
    return display_text(cell.value)


def _read_xls(path: Path) -> list[tuple[str, Grid]]:
    try:
        book = xlrd.open_workbook(str(path), formatting_info=True)
    except (xlrd.XLRDError, OSError, AssertionError) as exc:
        raise ValueError(f"Could not read XLS workbook {path}: {exc}") from exc

    grids: list[tuple[str, Grid]] = []
    try:
        for sheet in book.sheets():
            values = [
                _trim_trailing_blanks(
                    [_xls_cell_text(sheet.cell(r, c), book.datemode) for c in range(sheet.row_len(r))]
                )
                for r in range(sheet.nrows)
            ]
            # xlrd merge tuples are half-open: (rlo, rhi, clo, chi).
            ranges = [
                MergedRange(rlo, rhi - 1, clo, chi - 1)
                for rlo, rhi, clo, chi in sheet.merged_cells
            ]
            grids.append((sheet.name, Grid.from_values(values, ranges)))
    finally:
        book.release_resources()
    return grids


def _read_xlsx(path: Path) -> list[tuple[str, Grid]]:
    try:
        # data_only returns the cached result of formula cells, not the formula text.
        wb = load_workbook(path, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
        raise ValueError(f"Could not read workbook {path}: {exc}") from exc

    grids: list[tuple[str, Grid]] = []
    try:
        for ws in wb.worksheets:
            values = [
                _trim_trailing_blanks([display_text(v) for v in row])
                for row in ws.iter_rows(values_only=True)
            ]
            ranges = [
                MergedRange(r.min_row - 1, r.max_row - 1, r.min_col - 1, r.max_col - 1)
                for r in ws.merged_cells.ranges
            ]
            grids.append((ws.title, Grid.from_values(values, ranges)))
    finally:
        wb.close()
    return grids


def load_grids(path: Path) -> list[tuple[str, Grid]]:
    """Decode every sheet of a workbook into ``(sheet_name, grid)`` pairs.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    ValueError
        If *path* is a directory, the extension is unsupported, or decoding fails.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    if path.is_dir():
        raise ValueError(f"Input path is a directory, not a file: {path}")

    suffix = path.suffix.lower()
    if suffix == ".xls":
        grids = _read_xls(path)
    elif suffix in XLSX_SUFFIXES:
        grids = _read_xlsx(path)
    else:
        raise ValueError(f"Unsupported file type: {suffix!r}. Use .xls or .xlsx")

    logger.info("Read %d worksheet(s) from '%s'", len(grids), path.name)
    return grids


# ── Lookup tables ────────────────────────────────────────────────


def _read_lookup_lines(path: Path) -> pd.Series | None:
    """Return the data lines of a lookup CSV: header line skipped, blank lines dropped."""
    path = Path(path)
    if not path.is_file():
        logger.warning("Lookup file not found: %s; continuing without it", path)
        return None

    raw = path.read_bytes()
    for encoding in LOOKUP_ENCODINGS:
        try:
            text = raw.decode(encoding)
        except UnicodeDecodeError:
            continue
        lines = pd.Series(text.splitlines()[1:], dtype="string")
        return lines[lines.str.strip() != ""].reset_index(drop=True)
    logger.warning("Could not decode lookup file %s with %s; continuing without it", path, LOOKUP_ENCODINGS)
    return None


def _split_first_comma(lines: pd.Series) -> pd.DataFrame:
    """Split each line on its first comma only; column 1 is <NA> where there is none."""
    parts = lines.str.split(",", n=1, expand=True)
    if 1 not in parts.columns:
        parts[1] = pd.NA
    return parts.astype("string")


def load_translation_table(path: Path) -> Mapping[str, str]:
    """Load a ``source,target`` CSV (with a header row) into a read-only mapping.

    Each line splits on its first comma, so a target may itself contain
    commas. Rows with an empty source are skipped and the first entry for a
    repeated source wins. A line with no comma maps the source to itself,
    while an explicit empty target (``source,``) maps it to ``""``. A missing
    or unreadable file yields an empty table.
    """
    lines = _read_lookup_lines(path)
    table: dict[str, str] = {}
    if lines is not None and len(lines) > 0:
        parts = _split_first_comma(lines)
        for source, target in zip(parts[0].str.strip(), parts[1].str.strip()):
            if not source or source in table:
                continue
            table[source] = source if target is pd.NA else target
    logger.info("Loaded %d header translations from '%s'", len(table), path)
    return MappingProxyType(table)


def load_key_names(path: Path) -> frozenset[str]:
    """Load the first column of a key-name CSV (e.g. brand names) as a set."""
    lines = _read_lookup_lines(path)
    if lines is None or len(lines) == 0:
        return frozenset()
    first = _split_first_comma(lines)[0].str.strip()
    names = frozenset(name for name in first if name)
    logger.info("Loaded %d key names from '%s'", len(names), path)
    return names


# ── Writing ──────────────────────────────────────────────────────


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, (tuple, frozenset, set)):
        return list(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def write_json(path: Path, data: Any) -> Path:
    """Write *data* as pretty-printed JSON to *path* (atomic + deterministic)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    payload = json.dumps(
        data,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
        default=_json_default,
    ) + "\n"
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(payload, encoding="utf-8")
    tmp_path.replace(path)
    return path


def workbook_to_dict(workbook: Workbook) -> dict[str, Any]:
    return {
        "file_name": workbook.file_name,
        "worksheet_count": workbook.worksheet_count,
        "sheets": [
            {
                "name": sheet.name,
                "index": sheet.index,
                "original_row_count": sheet.original_row_count,
                "original_column_count": sheet.original_column_count,
                "header_range": sheet.header_range.to_dict(),
                "headers": list(sheet.headers),
                "rows": [list(row.cells) for row in sheet.rows],
            }
            for sheet in workbook.sheets
        ],
    }


def write_workbook_json(path: Path, workbook: Workbook) -> Path:
    """Write a processed workbook as JSON and return the path."""
    return write_json(path, workbook_to_dict(workbook))
