from pathlib import Path
from typing import Any

from openpyxl import load_workbook
from openpyxl.workbook.workbook import Workbook

from catalog_diff.extraction.base import BaseSnapshotExtractor
from catalog_diff.extraction.exceptions import ParseError
from catalog_diff.extraction.models import WORKBOOK, Row, Snapshot

_EMPTY_HEADER = "__EMPTY"


class OpenpyxlWorkbookExtractor(BaseSnapshotExtractor):
    """Reads .xlsx workbooks with openpyxl, one row object per data row."""

    FORMAT = WORKBOOK

    def validate(self, path: Path) -> dict[str, object]:
        workbook = self._open(path)
        try:
            sheet_count = len(workbook.sheetnames)
        finally:
            workbook.close()
        if sheet_count == 0:
            raise ParseError("Workbook has no sheets")
        return {"sheetCount": sheet_count}

    def extract(self, path: Path) -> Snapshot:
        workbook = self._open(path)
        try:
            sheets = {
                worksheet.title: self._read_rows(worksheet.iter_rows(values_only=True))
                for worksheet in workbook.worksheets
            }
        except ParseError:
            raise
        except Exception as exc:
            raise ParseError(f"Failed to read workbook '{path.name}': {exc}") from exc
        finally:
            workbook.close()
        return Snapshot(sheets=sheets)

    @staticmethod
    def _open(path: Path) -> Workbook:
        try:
            return load_workbook(path, read_only=True, data_only=True)
        except Exception as exc:
            raise ParseError(f"Cannot open workbook '{path.name}': {exc}") from exc

    def _read_rows(self, raw_rows: Any) -> list[Row]:
        rows = [tuple(raw) for raw in raw_rows]
        if not rows:
            return []
        width = max((_last_filled_index(row) + 1 for row in rows), default=0)
        if width == 0:
            return []

        header = _header_names(_pad(rows[0], width))
        records: list[Row] = []
        for raw in rows[1:]:
            values = _pad(raw, width)
            if all(_is_blank(value) for value in values):
                continue
            # Missing cells stay as explicit None so every row carries the full field set.
            records.append(dict(zip(header, values)))
        return records


def _header_names(cells: tuple[Any, ...]) -> list[str]:
    names: list[str] = []
    used: set[str] = set()
    counters: dict[str, int] = {}
    for cell in cells:
        base = _EMPTY_HEADER if _is_blank(cell) else str(cell).strip()
        count = counters.get(base, 0)
        name = base
        # A generated suffix may collide with a literal header further left.
        while name in used:
            count += 1
            name = f"{base}_{count}"
        counters[base] = count
        used.add(name)
        names.append(name)
    return names


def _pad(row: tuple[Any, ...], width: int) -> tuple[Any, ...]:
    if len(row) >= width:
        return row[:width]
    return row + (None,) * (width - len(row))


def _last_filled_index(row: tuple[Any, ...]) -> int:
    for index in range(len(row) - 1, -1, -1):
        if not _is_blank(row[index]):
            return index
    return -1


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())
