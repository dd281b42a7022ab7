"""Excel writer — one styled sheet per processed worksheet."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from openpyxl import Workbook as XlsxWorkbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from sheetprep.models import RunReport, Sheet, Workbook

# ── Style constants ──────────────────────────────────────────────

HEADER_FONT = Font(name="Calibri", bold=True, size=11, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="2F5496", end_color="2F5496", fill_type="solid")
HEADER_ALIGN = Alignment(horizontal="center", vertical="center", wrap_text=True)

LABEL_FONT = Font(name="Calibri", bold=True, size=11)
VALUE_FONT = Font(name="Calibri", size=11)
WARN_FONT = Font(name="Calibri", italic=True, size=10, color="CC6600")
NOTE_FILL = PatternFill(start_color="FFF2CC", end_color="FFF2CC", fill_type="solid")

_AUTO_WIDTH_SAMPLE_ROWS = 300
_EXCEL_FORMULA_PREFIXES = ("=", "+", "-", "@")
_INVALID_TITLE_CHARS = re.compile(r"[\[\]\*\?/\\:]")
_MAX_TITLE_LEN = 31


# ── Helpers ──────────────────────────────────────────────────────


def _style_header(ws: Worksheet, ncols: int) -> None:
    for c in range(1, ncols + 1):
        cell = ws.cell(row=1, column=c)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = HEADER_ALIGN


def _auto_width(ws: Worksheet) -> None:
    max_row = min(ws.max_row, _AUTO_WIDTH_SAMPLE_ROWS + 1)  # include header row
    for c_idx in range(1, ws.max_column + 1):
        letter = get_column_letter(c_idx)
        width = 0
        for row in ws.iter_rows(min_row=1, max_row=max_row, min_col=c_idx, max_col=c_idx):
            cell = row[0]
            width = max(width, len(str(cell.value or "")))
        width += 4
        ws.column_dimensions[letter].width = min(width, 30)


def _excel_value(val: str) -> Any:
    if not val:
        return None
    if val.startswith("'"):
        return val
    stripped = val.lstrip()
    if stripped and stripped[0] in _EXCEL_FORMULA_PREFIXES:
        return f"'{val}"
    return val


def _sheet_title(name: str, used: set[str]) -> str:
    base = _INVALID_TITLE_CHARS.sub("_", name).strip("'") or "Sheet"
    base = base[:_MAX_TITLE_LEN]
    title = base
    suffix = 1
    while title.lower() in used:
        suffix_str = f"_{suffix}"
        title = f"{base[: _MAX_TITLE_LEN - len(suffix_str)]}{suffix_str}"
        suffix += 1
    used.add(title.lower())
    return title


def _write_sheet(wb: XlsxWorkbook, title: str, sheet: Sheet) -> None:
    ws = wb.create_sheet(title=title)
    headers = list(sheet.headers)

    if not headers:
        ws.cell(row=1, column=1, value="No data").font = VALUE_FONT
        ws.column_dimensions["A"].width = 18
        return

    for c_idx, label in enumerate(headers, 1):
        ws.cell(row=1, column=c_idx, value=label)
    for r_idx, row in enumerate(sheet.rows, 2):
        for c_idx in range(1, len(headers) + 1):
            ws.cell(row=r_idx, column=c_idx, value=_excel_value(row.cell(c_idx - 1)))
    _style_header(ws, len(headers))
    ws.freeze_panes = "A2"
    if sheet.rows:
        ws.auto_filter.ref = ws.dimensions
    _auto_width(ws)


def _write_notes(wb: XlsxWorkbook, title: str, report: RunReport) -> None:
    ws = wb.create_sheet(title=title)
    ws.cell(row=1, column=1, value="Sheet").font = LABEL_FONT
    ws.cell(row=1, column=2, value="Note").font = LABEL_FONT
    row = 2
    for sheet_report in report.sheets:
        notes = sheet_report.warnings or ["No warnings"]
        for note in notes:
            ws.cell(row=row, column=1, value=sheet_report.sheet).fill = NOTE_FILL
            note_cell = ws.cell(row=row, column=2, value=note)
            note_cell.fill = NOTE_FILL
            note_cell.font = WARN_FONT if sheet_report.warnings else VALUE_FONT
            row += 1
    ws.column_dimensions["A"].width = 22
    ws.column_dimensions["B"].width = 90


# ── Public API ───────────────────────────────────────────────────


def write_workbook_xlsx(
    path: Path, workbook: Workbook, report: RunReport | None = None
) -> Path:
    """Write the processed *workbook* to *path* and return it.

    With a *report*, a trailing ``Notes`` sheet lists each sheet's warnings.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    wb = XlsxWorkbook()
    active_sheet = wb.active
    if active_sheet is not None:
        wb.remove(active_sheet)  # remove default sheet

    used: set[str] = set()
    for sheet in workbook.sheets:
        _write_sheet(wb, _sheet_title(sheet.name, used), sheet)
    if report is not None:
        _write_notes(wb, _sheet_title("Notes", used), report)
    if not wb.worksheets:
        wb.create_sheet(title="Sheet1")

    tmp_path = path.with_name(f"{path.stem}.tmp{path.suffix}")
    wb.save(tmp_path)
    tmp_path.replace(path)
    return path
