"""Collapse a stack of header rows into one label per column.

Resolution order per column:

1. Scan header rows bottom-to-top (specific sub-label before merged group label).
2. Return the translation of the first value found in the translation table.
3. Otherwise fall back to the bottom-most non-empty value, so unseen labels
   survive verbatim and can be added to the table later.
4. A column blank in every header row resolves to ``""``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from sheetprep.diagnostics import Diagnostics, ensure
from sheetprep.models import Row


def normalize_label(value: str) -> str:
    """Drop embedded line breaks so wrapped cells match one-line table keys.

    ``"総排\\n気量\\n（L）"`` becomes ``"総排気量（L）"``.
    """
    return value.replace("\r\n", "").replace("\r", "").replace("\n", "").strip()


def resolve_column_label(
    raw_header_rows: Sequence[Row], column: int, translations: Mapping[str, str]
) -> tuple[str, bool]:
    """Return ``(label, translated)`` for a single column."""
    fallback = ""
    for row in reversed(raw_header_rows):
        raw = row.cell(column).strip()
        if not raw:
            continue
        value = normalize_label(raw)
        if not fallback:
            fallback = value
        if value in translations:
            return translations[value], True
    return fallback, False


def resolve_headers(
    raw_header_rows: Sequence[Row],
    columns: Iterable[int],
    translations: Mapping[str, str],
    *,
    diagnostics: Diagnostics | None = None,
) -> list[str]:
    """Resolve one label per entry of *columns*, in the same order."""
    diag = ensure(diagnostics)
    resolved: list[str] = []
    for column in columns:
        label, translated = resolve_column_label(raw_header_rows, column, translations)
        if not label:
            diag.warn(
                "no-header-label",
                f"column {column}: no header label in {len(raw_header_rows)} header row(s)",
                column=column,
            )
        elif not translated and translations:
            diag.warn(
                "untranslated-header",
                f"column {column}: no translation for {label!r}; using it as-is",
                column=column,
            )
        resolved.append(label)
    return resolved
