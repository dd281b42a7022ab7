from __future__ import annotations

from sheetprep.grid import Grid, MergedRange, build_merged_values
from sheetprep.models import Row


def test_merged_range_positions_are_inclusive() -> None:
    assert list(MergedRange(0, 1, 2, 3).positions()) == [(0, 2), (0, 3), (1, 2), (1, 3)]


def test_build_merged_values_skips_origin_and_blank_origins() -> None:
    rows = [Row((" Group ", "", "")), Row(("", "", ""))]

    merged = build_merged_values(rows, [MergedRange(0, 0, 0, 2), MergedRange(1, 1, 0, 1)])

    assert merged == {(0, 1): "Group", (0, 2): "Group"}


def test_grid_value_prefers_own_cell_then_merged_origin() -> None:
    grid = Grid.from_values(
        [["エンジン", "", ""], ["", "  own  ", ""]],
        [MergedRange(0, 1, 0, 2)],
    )

    assert grid.value(0, 0) == "エンジン"
    assert grid.value(0, 2) == "エンジン"
    assert grid.value(1, 1) == "own"
    assert grid.value(1, 0) == "エンジン"
    assert grid.value(5, 5) == ""


def test_grid_row_expands_merged_cells_past_row_end() -> None:
    grid = Grid.from_values([["Engine"], ["a", "b", "c"]], [MergedRange(0, 0, 0, 2)])

    assert grid.width(0) == 3
    assert grid.row(0).cells == ("Engine", "Engine", "Engine")
    assert grid.raw_row(0).cells == ("Engine",)


def test_grid_without_merges_trims_cells() -> None:
    grid = Grid.from_values([[" a ", "b\n"]])

    assert grid.row_count == 1
    assert grid.row(0).cells == ("a", "b")
    assert grid.raw_row(3) == Row()


def test_grid_width_uses_the_widest_merge_per_row() -> None:
    values = [["Nissan", "", "", ""]] + [[""] for _ in range(499)]
    values[10] = ["", "Group"]
    grid = Grid.from_values(values, [MergedRange(0, 499, 0, 0), MergedRange(10, 10, 1, 5)])

    assert grid.width(0) == 4
    assert grid.width(250) == 1
    assert grid.width(10) == 6
    assert grid.width(500) == 0
    assert grid.row(499).cells == ("Nissan",)
    assert grid.row(10).cells == ("Nissan", "Group", "Group", "Group", "Group", "Group")


def test_grids_with_equal_contents_compare_equal() -> None:
    ranges = [MergedRange(0, 0, 0, 1)]

    assert Grid.from_values([["a", ""]], ranges) == Grid.from_values([["a", ""]], ranges)
