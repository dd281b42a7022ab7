"""Tests for the cleaned-workbook Excel writer."""

from __future__ import annotations

from pathlib import Path

from openpyxl import load_workbook

from sheetprep import report as report_mod
from sheetprep.models import Row, RunReport, Sheet, SheetReport, Workbook
from sheetprep.report import write_workbook_xlsx


def _processed_sheet(name: str = "Spec") -> Sheet:
    return Sheet(
        name=name,
        rows=(Row(("Nissan", "Note", "4045")), Row(("Nissan", "Leaf", ""))),
        headers=("Car Name", "Common Name", "Length"),
    )


def test_writes_one_sheet_per_worksheet_with_headers_and_rows(tmp_path: Path) -> None:
    workbook = Workbook("cars.xlsx", (_processed_sheet("Spec"), _processed_sheet("Spec2")))

    path = write_workbook_xlsx(tmp_path / "cars_clean.xlsx", workbook)

    wb = load_workbook(path)
    assert wb.sheetnames == ["Spec", "Spec2"]
    ws = wb["Spec"]
    assert [c.value for c in ws[1]] == ["Car Name", "Common Name", "Length"]
    assert [c.value for c in ws[2]] == ["Nissan", "Note", "4045"]
    assert ws.cell(row=3, column=3).value is None
    assert ws.freeze_panes == "A2"
    assert ws.auto_filter.ref == "A1:C3"
    assert ws.cell(row=1, column=1).font.bold is True


def test_atomic_save_leaves_no_temp_file(tmp_path: Path) -> None:
    write_workbook_xlsx(tmp_path / "out.xlsx", Workbook("x.xlsx", (_processed_sheet(),)))

    assert (tmp_path / "out.xlsx").exists()
    assert not (tmp_path / "out.tmp.xlsx").exists()


def test_sheet_without_headers_writes_no_data_note(tmp_path: Path) -> None:
    path = write_workbook_xlsx(tmp_path / "out.xlsx", Workbook("x.xlsx", (Sheet(name="Empty"),)))

    assert load_workbook(path)["Empty"].cell(row=1, column=1).value == "No data"


def test_empty_workbook_still_has_a_sheet(tmp_path: Path) -> None:
    path = write_workbook_xlsx(tmp_path / "out.xlsx", Workbook("x.xlsx"))

    assert load_workbook(path).sheetnames == ["Sheet1"]


def test_notes_sheet_lists_warnings_per_sheet(tmp_path: Path) -> None:
    report = RunReport(
        file_name="x.xlsx",
        sheets=[
            SheetReport(sheet="Spec", warnings=["column 4: no translation for '全長'"]),
            SheetReport(sheet="Other"),
        ],
    )
    workbook = Workbook("x.xlsx", (_processed_sheet("Spec"), _processed_sheet("Other")))

    path = write_workbook_xlsx(tmp_path / "out.xlsx", workbook, report)

    wb = load_workbook(path)
    assert wb.sheetnames[-1] == "Notes"
    notes = [[c.value for c in row] for row in wb["Notes"].iter_rows()]
    assert notes == [
        ["Sheet", "Note"],
        ["Spec", "column 4: no translation for '全長'"],
        ["Other", "No warnings"],
    ]


def test_formula_like_text_is_written_as_text(tmp_path: Path) -> None:
    sheet = Sheet(name="S", rows=(Row(("=SUM(A1)", "-5", "'kept")),), headers=("A", "B", "C"))

    path = write_workbook_xlsx(tmp_path / "out.xlsx", Workbook("x.xlsx", (sheet,)))

    ws = load_workbook(path)["S"]
    assert ws.cell(row=2, column=1).value == "'=SUM(A1)"
    assert ws.cell(row=2, column=1).data_type == "s"
    assert ws.cell(row=2, column=2).value == "'-5"
    assert ws.cell(row=2, column=3).value == "'kept"


def test_sheet_title_sanitises_and_deduplicates() -> None:
    used: set[str] = set()

    assert report_mod._sheet_title("a/b:c", used) == "a_b_c"
    assert report_mod._sheet_title("A_B_C", used) == "A_B_C_1"
    assert report_mod._sheet_title("x" * 40, used) == "x" * 31
    assert report_mod._sheet_title("", used) == "Sheet"


def test_notes_title_does_not_collide_with_a_data_sheet(tmp_path: Path) -> None:
    report = RunReport(file_name="x.xlsx", sheets=[SheetReport(sheet="Notes")])
    workbook = Workbook("x.xlsx", (_processed_sheet("Notes"),))

    path = write_workbook_xlsx(tmp_path / "out.xlsx", workbook, report)

    assert load_workbook(path).sheetnames == ["Notes", "Notes_1"]
