from collections.abc import Callable
from pathlib import Path

import pytest
from openpyxl import Workbook

SheetRows = dict[str, list[list[object]]]


def write_workbook(path: Path, sheets: SheetRows) -> Path:
    """Write an .xlsx file whose sheets hold the given rows (first row = header)."""
    workbook = Workbook()
    workbook.remove(workbook.active)
    for name, rows in sheets.items():
        worksheet = workbook.create_sheet(title=name)
        for row in rows:
            worksheet.append(row)
    workbook.save(path)
    return path


@pytest.fixture()
def make_workbook(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing workbooks into a scratch directory."""

    def _make(sheets: SheetRows, name: str = "catalog.xlsx") -> Path:
        return write_workbook(tmp_path / name, sheets)

    return _make


@pytest.fixture()
def signals_baseline(make_workbook: Callable[..., Path]) -> bytes:
    path = make_workbook({"Signals": [["ID", "height"], [1, 5], [2, 7]]}, name="baseline.xlsx")
    return path.read_bytes()


@pytest.fixture()
def signals_candidate(make_workbook: Callable[..., Path]) -> bytes:
    path = make_workbook({"Signals": [["ID", "height"], [1, 6], [3, 2]]}, name="candidate.xlsx")
    return path.read_bytes()
