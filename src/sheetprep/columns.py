"""Column selection: fill-ratio filtering, label resolution and de-duplication."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from sheetprep.config import PipelineConfig
from sheetprep.diagnostics import Diagnostics, ensure
from sheetprep.headers import resolve_headers
from sheetprep.models import ResolvedColumn, Row, Sheet

NO_PROTECTED_COLUMN = -1


def _pct(value: float) -> str:
    return f"{value * 100:.1f}%"


def fill_ratio(rows: Sequence[Row], column: int) -> float:
    """Fraction of *rows* whose cell in *column* is non-empty after trimming."""
    if not rows:
        return 0.0
    filled = sum(1 for row in rows if row.cell(column).strip())
    return filled / len(rows)


def find_protected_column(
    raw_header_rows: Sequence[Row],
    marker: str,
    *,
    diagnostics: Diagnostics | None = None,
) -> int:
    """Return the column whose header cells contain *marker*, or ``-1``."""
    diag = ensure(diagnostics)
    for row in raw_header_rows:
        for column, value in enumerate(row):
            if value.strip() == marker:
                diag.debug("protected-column", f"{marker!r} column found at index {column}")
                return column
    diag.warn(
        "no-protected-column",
        f"{marker!r} column not found; no column is protected from the fill threshold",
    )
    return NO_PROTECTED_COLUMN


# ── Stage A: fill threshold ─────────────────────────────────────


def filter_by_fill(
    rows: Sequence[Row],
    column_count: int,
    threshold: float,
    protected_column: int = NO_PROTECTED_COLUMN,
    *,
    diagnostics: Diagnostics | None = None,
) -> list[int]:
    """Return the column indices whose fill ratio is at least *threshold*.

    *protected_column* is kept unconditionally, even at 0% fill.
    """
    diag = ensure(diagnostics)
    if not rows:
        diag.warn("no-data-rows", "sheet has no data rows; skipping column analysis")
        return []

    kept: list[int] = []
    for column in range(column_count):
        ratio = fill_ratio(rows, column)
        if column == protected_column:
            kept.append(column)
            diag.info(
                "column-protected",
                f"keeping column {column} at {_pct(ratio)} fill (protected key column)",
                column=column,
            )
        elif ratio >= threshold:
            kept.append(column)
        else:
            diag.info(
                "column-dropped-fill",
                f"removing column {column}: {_pct(ratio)} fill "
                f"(below {_pct(threshold)} threshold)",
                column=column,
            )
    return kept


# ── Stage B: unlabelled columns ─────────────────────────────────


def drop_unlabelled(
    columns: Sequence[int],
    labels: Sequence[str],
    rows: Sequence[Row] = (),
    *,
    diagnostics: Diagnostics | None = None,
) -> list[ResolvedColumn]:
    """Pair *columns* with *labels*, dropping any column whose label is empty."""
    diag = ensure(diagnostics)
    named: list[ResolvedColumn] = []
    for column, label in zip(columns, labels):
        if not label:
            diag.info(
                "column-dropped-unlabelled",
                f"removing unlabelled column {column} (no header resolved)",
                column=column,
            )
            continue
        named.append(ResolvedColumn(column, label, fill_ratio(rows, column)))
    return named


# ── Stage C/D: duplicate labels ─────────────────────────────────


def data_fill_rate(rows: Sequence[Row], column: int, min_cells: int) -> float:
    """Fill ratio over "real" data rows only.

    A row counts when it has at least *min_cells* non-empty cells, which keeps
    trailing footnotes from skewing the comparison. With no such rows this is
    the plain :func:`fill_ratio`.
    """
    data_rows = [row for row in rows if row.non_empty_count() >= min_cells]
    if not data_rows:
        return fill_ratio(rows, column)
    return fill_ratio(data_rows, column)


def resolve_duplicates(
    columns: Sequence[ResolvedColumn],
    rows: Sequence[Row],
    *,
    ratio: float = 0.5,
    min_cells: int = 4,
    diagnostics: Diagnostics | None = None,
) -> list[ResolvedColumn]:
    """Disambiguate columns that resolved to the same label.

    Within a label group, members filling less than ``ratio`` times the best
    member's data fill rate are dropped as merged-header artefacts. Survivors
    keep original column order; the first keeps the bare label and later ones
    become ``"label (2)"``, ``"label (3)"`` and so on.
    """
    diag = ensure(diagnostics)

    groups: dict[str, list[int]] = {}
    for position, col in enumerate(columns):
        groups.setdefault(col.label, []).append(position)

    dropped: set[int] = set()
    for label, positions in groups.items():
        if len(positions) < 2:
            continue
        rates = {
            p: data_fill_rate(rows, columns[p].original_column_index, min_cells)
            for p in positions
        }
        max_fill = max(rates.values())
        cutoff = max_fill * ratio
        for p in positions:
            if rates[p] < cutoff:
                dropped.add(p)
                diag.info(
                    "duplicate-dropped",
                    f"dropping duplicate column {columns[p].original_column_index} "
                    f"({label!r}): {_pct(rates[p])} fill vs {_pct(max_fill)} best fill",
                    column=columns[p].original_column_index,
                )

    seen: dict[str, int] = {}
    resolved: list[ResolvedColumn] = []
    for position, col in enumerate(columns):
        if position in dropped:
            continue
        count = seen.get(col.label, 0) + 1
        seen[col.label] = count
        label = col.label if count == 1 else f"{col.label} ({count})"
        if count > 1:
            diag.info(
                "duplicate-renamed",
                f"duplicate header {col.label!r} renamed to {label!r}",
                column=col.original_column_index,
            )
        resolved.append(ResolvedColumn(col.original_column_index, label, col.fill_rate))
    return resolved


# ── Full selection ──────────────────────────────────────────────


def select_columns(
    sheet: Sheet,
    translations: Mapping[str, str],
    config: PipelineConfig | None = None,
    *,
    diagnostics: Diagnostics | None = None,
) -> list[ResolvedColumn]:
    """Run fill filtering, label resolution and de-duplication for *sheet*."""
    config = config or PipelineConfig()
    diag = ensure(diagnostics, sheet.name)

    protected = find_protected_column(sheet.raw_header_rows, config.key_label, diagnostics=diag)
    kept = filter_by_fill(
        sheet.rows,
        sheet.original_column_count,
        config.column_threshold,
        protected,
        diagnostics=diag,
    )
    labels = resolve_headers(sheet.raw_header_rows, kept, translations, diagnostics=diag)
    named = drop_unlabelled(kept, labels, sheet.rows, diagnostics=diag)
    return resolve_duplicates(
        named,
        sheet.rows,
        ratio=config.dedup_fill_ratio,
        min_cells=config.data_row_min_cells,
        diagnostics=diag,
    )


def project_rows(rows: Iterable[Row], columns: Sequence[ResolvedColumn]) -> tuple[Row, ...]:
    """Keep only the selected columns of each row, in selection order."""
    indices = [c.original_column_index for c in columns]
    return tuple(row.select(indices) for row in rows)
