"""In-memory cell grid with merged-rectangle fallback values."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType

from sheetprep.models import Row


@dataclass(frozen=True)
class MergedRange:
    """A merged rectangle, 0-based and inclusive on both axes."""

    first_row: int
    last_row: int
    first_col: int
    last_col: int

    def positions(self) -> Iterable[tuple[int, int]]:
        for r in range(self.first_row, self.last_row + 1):
            for c in range(self.first_col, self.last_col + 1):
                yield r, c


def build_merged_values(
    rows: Sequence[Row], ranges: Iterable[MergedRange]
) -> dict[tuple[int, int], str]:
    """Map every non-origin cell of each merge to its origin's trimmed value.

    Merges whose origin is blank contribute nothing.
    """
    merged: dict[tuple[int, int], str] = {}
    for rng in ranges:
        if rng.first_row >= len(rows):
            continue
        value = rows[rng.first_row].cell(rng.first_col).strip()
        if not value:
            continue
        for pos in rng.positions():
            if pos == (rng.first_row, rng.first_col):
                continue
            merged[pos] = value
    return merged


@dataclass(frozen=True)
class Grid:
    """Decoded sheet contents: display strings plus the merged-cell lookup."""

    rows: tuple[Row, ...] = ()
    merged: Mapping[tuple[int, int], str] = field(default_factory=dict)
    _merged_widths: Mapping[int, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "rows", tuple(r if isinstance(r, Row) else Row(tuple(r)) for r in self.rows)
        )
        object.__setattr__(self, "merged", MappingProxyType(dict(self.merged)))
        widths: dict[int, int] = {}
        for r, c in self.merged:
            if c + 1 > widths.get(r, 0):
                widths[r] = c + 1
        object.__setattr__(self, "_merged_widths", MappingProxyType(widths))

    @classmethod
    def from_values(
        cls,
        values: Iterable[Iterable[str]],
        merged_ranges: Iterable[MergedRange] = (),
    ) -> Grid:
        rows = tuple(Row(tuple(v)) for v in values)
        return cls(rows=rows, merged=build_merged_values(rows, merged_ranges))

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def raw_row(self, row_index: int) -> Row:
        if 0 <= row_index < len(self.rows):
            return self.rows[row_index]
        return Row()

    def value(self, row_index: int, col_index: int) -> str:
        value = self.raw_row(row_index).cell(col_index).strip()
        if value:
            return value
        return self.merged.get((row_index, col_index), "")

    def width(self, row_index: int) -> int:
        return max(len(self.raw_row(row_index)), self._merged_widths.get(row_index, 0))

    def row(self, row_index: int) -> Row:
        """Return the trimmed row with merged fallbacks filled in."""
        return Row(tuple(self.value(row_index, c) for c in range(self.width(row_index))))
