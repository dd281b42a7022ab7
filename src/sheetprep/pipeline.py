"""Sheet and workbook processing — pure functions, no I/O."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Set
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace

from sheetprep.columns import project_rows, select_columns
from sheetprep.config import PipelineConfig
from sheetprep.detect import build_sheet
from sheetprep.diagnostics import Diagnostics, ensure
from sheetprep.filldown import fill_down
from sheetprep.grid import Grid
from sheetprep.models import RunReport, Sheet, SheetReport, Workbook


def process_sheet(
    sheet: Sheet,
    translations: Mapping[str, str],
    config: PipelineConfig | None = None,
    *,
    diagnostics: Diagnostics | None = None,
) -> Sheet:
    """Select, label and fill down the columns of *sheet*.

    Returns a new sheet with ``headers`` set and the raw header rows dropped;
    the input sheet is left untouched.
    """
    config = config or PipelineConfig()
    diag = ensure(diagnostics, sheet.name)

    columns = select_columns(sheet, translations, config, diagnostics=diag)
    headers = tuple(c.label for c in columns)
    rows = project_rows(sheet.rows, columns)
    rows = fill_down(
        headers,
        rows,
        always_column=config.always_fill_column,
        until_next_column=config.until_next_column,
        min_cells=config.data_row_min_cells,
        diagnostics=diag,
    )

    if not headers:
        diag.warn("empty-result", "no columns survived processing; sheet output is empty")
    diag.info("sheet-processed", f"{len(headers)} column(s) -> headers: {list(headers)}")
    return replace(sheet, headers=headers, rows=rows if headers else (), raw_header_rows=())


def _sheet_report(before: Sheet, after: Sheet, diagnostics: Diagnostics) -> SheetReport:
    columns_in = before.original_column_count
    columns_out = len(after.headers)
    return SheetReport(
        sheet=before.name,
        rows_in=len(before.rows),
        rows_out=len(after.rows),
        columns_in=columns_in,
        columns_out=columns_out,
        dropped_columns=columns_in - columns_out,
        header_range=before.header_range,
        headers=list(after.headers),
        warnings=diagnostics.warnings,
        events=diagnostics.to_dicts(),
    )


def process_workbook(
    workbook: Workbook,
    translations: Mapping[str, str],
    config: PipelineConfig | None = None,
    *,
    diagnostics_by_sheet: Mapping[str, Diagnostics] | None = None,
    max_workers: int = 1,
) -> tuple[Workbook, RunReport]:
    """Process every sheet independently.

    Sheets share nothing but the read-only translation table and config, so
    with ``max_workers > 1`` they run on a thread pool. Output order always
    matches input order.
    """
    config = config or PipelineConfig()
    diagnostics_by_sheet = diagnostics_by_sheet or {}
    diags = [diagnostics_by_sheet.get(s.name) or Diagnostics(sheet=s.name) for s in workbook.sheets]

    def _run(pair: tuple[Sheet, Diagnostics]) -> Sheet:
        sheet, diag = pair
        return process_sheet(sheet, translations, config, diagnostics=diag)

    pairs = list(zip(workbook.sheets, diags))
    if max_workers > 1 and len(pairs) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            processed = list(pool.map(_run, pairs))
    else:
        processed = [_run(pair) for pair in pairs]

    report = RunReport(
        file_name=workbook.file_name,
        sheets=[_sheet_report(b, a, d) for b, a, d in zip(workbook.sheets, processed, diags)],
    )
    return replace(workbook, sheets=tuple(processed)), report


def prepare_workbook(
    file_name: str,
    grids: Iterable[tuple[str, Grid]],
    *,
    key_names: Set[str] = frozenset(),
    config: PipelineConfig | None = None,
) -> tuple[Workbook, dict[str, Diagnostics]]:
    """Turn decoded grids into sheets, returning each sheet's diagnostics.

    Pass the diagnostics on to :func:`process_workbook` so detection events
    end up in the same per-sheet report.
    """
    config = config or PipelineConfig()
    sheets: list[Sheet] = []
    diagnostics: dict[str, Diagnostics] = {}
    for index, (name, grid) in enumerate(grids):
        diag = Diagnostics(sheet=name)
        sheets.append(
            build_sheet(name, index, grid, key_names=key_names, config=config, diagnostics=diag)
        )
        diagnostics[name] = diag
    return Workbook(file_name=file_name, sheets=tuple(sheets)), diagnostics
