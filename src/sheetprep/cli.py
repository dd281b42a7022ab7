"""CLI entry point for sheetprep."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from enum import Enum
from pathlib import Path
from types import MappingProxyType

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table as RichTable

from sheetprep import __version__
from sheetprep.config import PipelineConfig
from sheetprep.io import (
    load_grids,
    load_key_names,
    load_translation_table,
    write_json,
    write_workbook_json,
)
from sheetprep.models import RunManifest, RunReport, Workbook
from sheetprep.pipeline import prepare_workbook, process_workbook
from sheetprep.qc import write_qc_report
from sheetprep.report import write_workbook_xlsx
from sheetprep.utils import clean_output_path, sha256_file, utcnow_iso

app = typer.Typer(
    name="sheetprep",
    help="sheetprep — Normalize multi-row-header spreadsheet exports into clean tables.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()


class OutputFormat(str, Enum):
    xlsx = "xlsx"
    json = "json"
    both = "both"


def _noop(*_args: object, **_kwargs: object) -> None:
    return None


def _printer(quiet: bool) -> Callable[..., None]:
    return _noop if quiet else console.print


def _err(msg: str) -> None:
    console.print(f"[red]x[/red] {escape(msg)}")


def _configure_logging(*, quiet: bool, verbose: bool) -> None:
    level = logging.DEBUG if verbose else (logging.ERROR if quiet else logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False, markup=False)],
        force=True,
    )
    # Sheet diagnostics reach the user through the summary; only echo them when verbose.
    logging.getLogger("sheetprep.diagnostics").setLevel(
        logging.DEBUG if verbose else logging.ERROR
    )


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"sheetprep v{__version__}")
        raise typer.Exit()


def _write_manifest(
    out_dir: Path,
    input_file: Path,
    run_id: str,
    created_at: str,
    report: RunReport,
    *,
    status: str = "success",
    error_code: int | None = None,
    error_message: str = "",
) -> Path:
    sha256 = ""
    try:
        sha256 = sha256_file(input_file)
    except OSError:
        pass

    manifest = RunManifest(
        run_id=run_id,
        version=__version__,
        input_path=str(input_file.resolve()),
        output_dir=str(out_dir.resolve()),
        created_at_utc=created_at,
        sheet_count=len(report.sheets),
        rows_in=report.rows_in,
        rows_out=report.rows_out,
        sha256=sha256,
        status=status,
        error_code=error_code,
        error_message=error_message,
    )
    return write_json(out_dir / "run_manifest.json", manifest.to_dict())


def _fail(
    out_dir: Path,
    input_file: Path,
    run_id: str,
    created_at: str,
    *,
    message: str,
    error_code: int = 2,
) -> typer.Exit:
    report = RunReport(file_name=input_file.name, warnings=[message])
    qc_path = write_qc_report(out_dir, report)
    manifest_path = _write_manifest(
        out_dir,
        input_file,
        run_id,
        created_at,
        report,
        status="failed",
        error_code=error_code,
        error_message=message,
    )
    _err(message)
    console.print(f"  QC report -> {qc_path}")
    console.print(f"  Manifest  -> {manifest_path}")
    return typer.Exit(code=error_code)


def _load_lookups(
    headers: Path | None, brands: Path | None
) -> tuple[Mapping[str, str], frozenset[str]]:
    translations = load_translation_table(headers) if headers else MappingProxyType({})
    key_names = load_key_names(brands) if brands else frozenset()
    return translations, key_names


def _process(
    input_file: Path,
    config: PipelineConfig,
    translations: Mapping[str, str],
    key_names: frozenset[str],
    workers: int,
) -> tuple[Workbook, RunReport]:
    grids = load_grids(input_file)
    workbook, diagnostics = prepare_workbook(
        input_file.name, grids, key_names=key_names, config=config
    )
    return process_workbook(
        workbook,
        translations,
        config,
        diagnostics_by_sheet=diagnostics,
        max_workers=workers,
    )


def _print_sheet_summary(report: RunReport) -> None:
    for sheet in report.sheets:
        console.print(
            f"  [bold]{escape(sheet.sheet)}[/bold]: rows {sheet.rows_in} -> {sheet.rows_out}, "
            f"columns {sheet.columns_in} -> {sheet.columns_out}"
        )
        for w in sheet.warnings:
            console.print(f"    [yellow]![/yellow] {escape(w)}")


# ── Callbacks ────────────────────────────────────────────────────


@app.callback()
def main(
    version: bool | None = typer.Option(
        None, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """sheetprep CLI."""


# ── run command ──────────────────────────────────────────────────


@app.command()
def run(
    input_file: Path = typer.Option(
        ..., "--input", "-i",
        help="Path to the .xls or .xlsx workbook.",
        exists=True, readable=True,
    ),
    out_dir: Path = typer.Option(
        Path("output"), "--out-dir", "-o",
        help="Output directory for the cleaned workbook, QC report and manifest.",
    ),
    threshold: float | None = typer.Option(
        None, "--threshold", "-t",
        min=0.0, max=1.0,
        help="Minimum column fill ratio to keep a column (e.g. 0.1 = 10%).",
    ),
    headers: Path | None = typer.Option(
        None, "--headers",
        help="Header translation CSV (source,target with a header row).",
    ),
    brands: Path | None = typer.Option(
        None, "--brands",
        help="Key-name CSV (e.g. brand names); first column is used.",
    ),
    profile: Path | None = typer.Option(
        None, "--profile",
        help="Profile file with key=value pipeline settings.",
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.xlsx, "--format", "-f",
        help="Output format: xlsx, json, or both.",
    ),
    workers: int = typer.Option(
        1, "--workers", "-w", min=1,
        help="Process sheets in parallel with this many threads.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output; still writes all artifacts.",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Log every pipeline decision.",
    ),
) -> None:
    """Clean a workbook: detect headers, filter columns, fill down group columns."""
    _configure_logging(quiet=quiet, verbose=verbose)
    echo = _printer(quiet)
    created_at = utcnow_iso()
    run_id = created_at
    out_dir.mkdir(parents=True, exist_ok=True)

    try:
        config = PipelineConfig.from_profile(profile, column_threshold=threshold)
    except (TypeError, ValueError) as exc:
        raise _fail(out_dir, input_file, run_id, created_at, message=str(exc))

    if not quiet:
        console.print(Panel(
            f"[bold]sheetprep[/bold] v{__version__}\n"
            f"Input:  {escape(str(input_file))}\nOutput: {escape(str(out_dir))}",
            title="Pipeline Start", border_style="blue",
        ))
        if profile:
            console.print(f"  Using profile: {escape(str(profile))}")
        console.print(
            f"  Column threshold: {config.column_threshold:.2f}, "
            f"key label: {escape(config.key_label)}"
        )

    translations, key_names = _load_lookups(headers, brands)
    echo(f"  {len(translations)} header translations, {len(key_names)} key names")

    echo("[blue]>[/blue] Reading and processing workbook …")
    try:
        processed, report = _process(input_file, config, translations, key_names, workers)
    except (FileNotFoundError, ValueError, OSError) as exc:
        raise _fail(out_dir, input_file, run_id, created_at, message=str(exc))
    except Exception as exc:
        raise _fail(
            out_dir,
            input_file,
            run_id,
            created_at,
            message=f"Unexpected internal error: {exc}",
            error_code=1,
        )

    try:
        qc_path = write_qc_report(out_dir, report)
        echo(f"  QC report -> {qc_path}")

        outputs: list[Path] = []
        if output_format in (OutputFormat.xlsx, OutputFormat.both):
            echo("[blue]>[/blue] Writing cleaned workbook …")
            outputs.append(
                write_workbook_xlsx(clean_output_path(out_dir, input_file, ".xlsx"), processed, report)
            )
        if output_format in (OutputFormat.json, OutputFormat.both):
            echo("[blue]>[/blue] Writing JSON …")
            outputs.append(
                write_workbook_json(clean_output_path(out_dir, input_file, ".json"), processed)
            )
        for path in outputs:
            echo(f"  Output -> {path}")

        manifest_path = _write_manifest(out_dir, input_file, run_id, created_at, report)
        echo(f"  Manifest -> {manifest_path}")

        if not quiet:
            _print_sheet_summary(report)
            console.print(Panel(
                f"[green]Done[/green] — {processed.worksheet_count} sheet(s), "
                f"{report.rows_out} rows",
                title="Pipeline Complete", border_style="green",
            ))
    except OSError as exc:
        raise _fail(out_dir, input_file, run_id, created_at, message=f"Could not write output: {exc}")
    except Exception as exc:
        raise _fail(
            out_dir,
            input_file,
            run_id,
            created_at,
            message=f"Unexpected internal error: {exc}",
            error_code=1,
        )


# ── inspect command ──────────────────────────────────────────────


@app.command()
def inspect(
    input_file: Path = typer.Option(
        ..., "--input", "-i",
        help="Path to the .xls or .xlsx workbook.",
        exists=True, readable=True,
    ),
    out_dir: Path = typer.Option(
        Path("output"), "--out-dir", "-o",
        help="Output directory for QC + manifest.",
    ),
    threshold: float | None = typer.Option(
        None, "--threshold", "-t",
        min=0.0, max=1.0,
        help="Minimum column fill ratio to keep a column (e.g. 0.1 = 10%).",
    ),
    headers: Path | None = typer.Option(
        None, "--headers",
        help="Header translation CSV (source,target with a header row).",
    ),
    brands: Path | None = typer.Option(
        None, "--brands",
        help="Key-name CSV (e.g. brand names); first column is used.",
    ),
    profile: Path | None = typer.Option(
        None, "--profile",
        help="Profile file with key=value pipeline settings.",
    ),
    strict: bool = typer.Option(
        False, "--strict",
        help="Exit with code 2 when any sheet produced warnings.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress the summary table; still writes QC + manifest.",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Log every pipeline decision.",
    ),
) -> None:
    """Show what a run would keep, without writing the cleaned workbook.

    Writes qc_report.json + run_manifest.json only.
    """
    _configure_logging(quiet=quiet, verbose=verbose)
    created_at = utcnow_iso()
    run_id = created_at
    out_dir.mkdir(parents=True, exist_ok=True)

    try:
        config = PipelineConfig.from_profile(profile, column_threshold=threshold)
    except (TypeError, ValueError) as exc:
        raise _fail(out_dir, input_file, run_id, created_at, message=str(exc))

    translations, key_names = _load_lookups(headers, brands)
    try:
        _processed, report = _process(input_file, config, translations, key_names, 1)
    except (FileNotFoundError, ValueError, OSError) as exc:
        raise _fail(out_dir, input_file, run_id, created_at, message=str(exc))
    except Exception as exc:
        raise _fail(
            out_dir,
            input_file,
            run_id,
            created_at,
            message=f"Unexpected internal error: {exc}",
            error_code=1,
        )

    qc_path = write_qc_report(out_dir, report)
    manifest_path = _write_manifest(out_dir, input_file, run_id, created_at, report)

    if not quiet:
        tbl = RichTable(title="Inspection Summary", show_lines=True)
        tbl.add_column("Sheet", style="bold")
        tbl.add_column("Header rows")
        tbl.add_column("Rows")
        tbl.add_column("Columns")
        tbl.add_column("Headers")
        tbl.add_column("Warnings")
        for sheet in report.sheets:
            header_range = sheet.header_range
            tbl.add_row(
                escape(sheet.sheet),
                f"{header_range.start_row_index}-{header_range.end_row_index}"
                if header_range else "-",
                f"{sheet.rows_in} -> {sheet.rows_out}",
                f"{sheet.columns_in} -> {sheet.columns_out}",
                escape(", ".join(sheet.headers)) or "[red]none[/red]",
                f"[yellow]{len(sheet.warnings)}[/yellow]" if sheet.warnings else "[green]0[/green]",
            )
        console.print(tbl)
        for w in report.all_warnings():
            console.print(f"  [yellow]![/yellow] {escape(w)}")
    console.print(f"  QC       -> {qc_path}")
    console.print(f"  Manifest -> {manifest_path}")

    if strict and report.all_warnings():
        _err(f"{len(report.all_warnings())} warning(s) reported")
        raise typer.Exit(code=2)
