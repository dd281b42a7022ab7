"""Shared fixtures: small vehicle-spec workbooks built with openpyxl."""

from __future__ import annotations

from pathlib import Path

import pytest
from openpyxl import Workbook

# A sheet shaped like a real export: title + unit rows, a three-row header
# block anchored on 車名, grouped rows with blank brand/model cells, a footnote.
SPEC_ROWS: list[list[object]] = [
    ["2024年 乗用車諸元表"],
    ["単位: mm"],
    ["車名", "通称名", "型式", "全長", "重量", "燃料", "備考"],
    [None, None, None, "外寸", "車両", None, None],
    [None, None, None, "mm", "kg", None, None],
    ["Nissan", "Note", "E13", 4045, 1220, "ガソリン", None],
    [None, None, "FE13", 4045, 1250, "ガソリン", None],
    [None, "Leaf", "ZE1", 4480, 1490, "電気", None],
    ["Toyota", "Yaris", "KSP210", 3940, 1000, "ガソリン", None],
    [None, None, "MXPA10", 3940, 1050, "ガソリン", None],
    ["※ 燃費はWLTCモード"],
]

TRANSLATIONS_CSV = (
    "source,target\n"
    "車名,Car Name\n"
    "通称名,Common Name\n"
    "型式,Model Code\n"
    "mm,Length\n"
    "kg,Weight\n"
    "燃料,Fuel\n"
)
BRANDS_CSV = "brand\nNissan\nToyota\n"


def write_xlsx(
    path: Path,
    sheets: dict[str, list[list[object]]],
    merges: dict[str, list[str]] | None = None,
) -> Path:
    wb = Workbook()
    wb.remove(wb.active)
    for title, rows in sheets.items():
        ws = wb.create_sheet(title=title)
        for row in rows:
            ws.append(row)
        for ref in (merges or {}).get(title, []):
            ws.merge_cells(ref)
    wb.save(path)
    return path


@pytest.fixture
def spec_xlsx(tmp_path: Path) -> Path:
    return write_xlsx(tmp_path / "nissan.xlsx", {"Spec": SPEC_ROWS})


@pytest.fixture
def translations_csv(tmp_path: Path) -> Path:
    path = tmp_path / "headers.csv"
    path.write_text(TRANSLATIONS_CSV, encoding="utf-8")
    return path


@pytest.fixture
def brands_csv(tmp_path: Path) -> Path:
    path = tmp_path / "brands.csv"
    path.write_text(BRANDS_CSV, encoding="utf-8")
    return path
