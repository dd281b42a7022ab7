from __future__ import annotations

import pytest

from sheetprep.models import HeaderRange, Row, RunManifest, RunReport, Sheet, SheetReport, Workbook


def test_row_cell_out_of_range_is_empty() -> None:
    row = Row(("a", "b"))

    assert row.cell(0) == "a"
    assert row.cell(5) == ""
    assert row.cell(-1) == ""


def test_row_non_empty_count_ignores_whitespace() -> None:
    assert Row(("x", " ", "", "y")).non_empty_count() == 2


def test_row_with_cell_returns_new_row() -> None:
    row = Row(("a",))

    updated = row.with_cell(2, "c")

    assert row.cells == ("a",)
    assert updated.cells == ("a", "", "c")


def test_row_select_pads_missing_cells() -> None:
    assert Row(("a", "b", "c")).select([2, 0, 9]).cells == ("c", "a", "")


def test_row_rejects_non_string_cells() -> None:
    with pytest.raises(TypeError, match="cells"):
        Row(("a", 1))  # type: ignore[arg-type]


def test_header_range_row_classification() -> None:
    header_range = HeaderRange(3, 7)

    assert header_range.data_start_row_index == 8
    assert header_range.is_pre_header_row(0)
    assert header_range.is_pre_header_row(2)
    assert not header_range.is_pre_header_row(3)
    assert header_range.is_header_row(3)
    assert header_range.is_header_row(7)
    assert not header_range.is_header_row(8)
    assert header_range.to_dict() == {"start": 3, "end": 7}


def test_header_range_single_row() -> None:
    header_range = HeaderRange(0, 0)

    assert header_range.is_header_row(0)
    assert not header_range.is_pre_header_row(0)
    assert header_range.data_start_row_index == 1


def test_header_range_rejects_invalid_bounds() -> None:
    with pytest.raises(ValueError, match="start_row_index"):
        HeaderRange(-1, 2)

    with pytest.raises(ValueError, match="start_row_index must be <= end_row_index"):
        HeaderRange(5, 4)

    with pytest.raises(TypeError, match="end_row_index"):
        HeaderRange(0, True)  # type: ignore[arg-type]


def test_sheet_coerces_rows_and_exposes_header_range() -> None:
    sheet = Sheet(name="S", rows=[["a", "b"]], header_range_start=1, header_range_end=2)  # type: ignore[list-item]

    assert sheet.rows == (Row(("a", "b")),)
    assert sheet.header_range == HeaderRange(1, 2)


def test_workbook_worksheet_count() -> None:
    workbook = Workbook(file_name="f.xlsx", sheets=[Sheet(name="a"), Sheet(name="b")])  # type: ignore[arg-type]

    assert workbook.worksheet_count == 2
    assert isinstance(workbook.sheets, tuple)


def test_sheet_report_enforces_column_accounting() -> None:
    with pytest.raises(ValueError, match="columns_out"):
        SheetReport(columns_in=2, columns_out=3)

    with pytest.raises(ValueError, match="dropped_columns"):
        SheetReport(columns_in=5, columns_out=3, dropped_columns=1)

    with pytest.raises(ValueError, match="rows_in"):
        SheetReport(rows_in=-1)


def test_sheet_report_to_dict_copies_lists() -> None:
    report = SheetReport(
        sheet="S",
        columns_in=4,
        columns_out=3,
        dropped_columns=1,
        header_range=HeaderRange(2, 4),
        headers=["A", "B", "C"],
        warnings=["w"],
    )

    payload = report.to_dict()
    payload["headers"].append("D")
    payload["warnings"].append("x")

    assert report.headers == ["A", "B", "C"]
    assert report.warnings == ["w"]
    assert payload["header_range"] == {"start": 2, "end": 4}


def test_run_report_totals_and_prefixed_warnings() -> None:
    report = RunReport(
        file_name="f.xlsx",
        sheets=[
            SheetReport(sheet="A", rows_in=3, rows_out=3, warnings=["no label"]),
            SheetReport(sheet="B", rows_in=2, rows_out=0),
        ],
        warnings=["workbook level"],
    )

    assert report.rows_in == 5
    assert report.rows_out == 3
    assert report.all_warnings() == ["workbook level", "[A] no label"]
    assert report.to_dict()["rows_in"] == 5


def test_run_manifest_rejects_unknown_status() -> None:
    with pytest.raises(ValueError, match="status"):
        RunManifest(status="partial")


def test_run_manifest_to_dict_includes_failure_fields() -> None:
    manifest = RunManifest(status="failed", error_code=2, error_message="bad input")

    payload = manifest.to_dict()

    assert payload["tool"] == "sheetprep"
    assert payload["status"] == "failed"
    assert payload["error_code"] == 2
    assert payload["error_message"] == "bad input"
