"""Row-level diff between two snapshots.

Rows are matched per sheet by an inferred key field: the first field whose
name contains "id" (case-insensitive). Sheets without such a field fall back
to positional keys (``row_<index>``), so reordering those sheets shows up as
spurious additions and deletions.
"""

import math
from datetime import date, datetime, time, timedelta
from typing import Any

from catalog_diff.diff.models import ADDED, DELETED, MINOR, MODIFIED, Change
from catalog_diff.diff.rules import infer_category, infer_classification
from catalog_diff.extraction.models import Row, Snapshot

MAX_LISTED_DIFFS = 6


def pick_key_field(rows: list[Row]) -> str | None:
    for row in rows:
        for field_name in row:
            if "id" in field_name.lower():
                return field_name
    return None


def normalize_value(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return str(value)
    return value


def render_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    return str(value)


def values_equal(left: Any, right: Any) -> bool:
    # Booleans never compare equal to numbers.
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    return left == right


def row_key(row: Row, key_field: str | None, index: int) -> str:
    if key_field is not None and row.get(key_field) is not None:
        return render_value(normalize_value(row[key_field]))
    return f"row_{index}"


class RowDiffer:
    """Computes Change records between a baseline and a candidate snapshot."""

    def __init__(self, max_listed_diffs: int = MAX_LISTED_DIFFS) -> None:
        self._max_listed_diffs = max_listed_diffs

    def diff(self, baseline: Snapshot | None, candidate: Snapshot) -> list[Change]:
        base_sheets = baseline.sheets if baseline is not None else {}
        sheet_names = list(dict.fromkeys([*base_sheets, *candidate.sheets]))
        changes: list[Change] = []
        for name in sheet_names:
            changes.extend(
                self.diff_sheet(name, base_sheets.get(name, []), candidate.sheets.get(name, []))
            )
        return changes

    def diff_sheet(self, sheet_name: str, old_rows: list[Row], new_rows: list[Row]) -> list[Change]:
        key_field = pick_key_field(new_rows) or pick_key_field(old_rows)
        old_by_key = self._index_rows(old_rows, key_field)
        new_by_key = self._index_rows(new_rows, key_field)
        category = infer_category(sheet_name)

        changes: list[Change] = []
        for key, old_row in old_by_key.items():
            new_row = new_by_key.get(key)
            if new_row is None:
                changes.append(
                    Change(
                        id=f"{sheet_name}:{key}",
                        object=key,
                        type=DELETED,
                        classification=MINOR,
                        category=category,
                        changes=f'Removed from sheet "{sheet_name}"',
                    )
                )
                continue

            diffs = self._field_diffs(old_row, new_row)
            if diffs:
                changes.append(
                    Change(
                        id=f"{sheet_name}:{key}",
                        object=key,
                        type=MODIFIED,
                        classification=infer_classification(sheet_name, diffs),
                        category=category,
                        changes=self._summarize(diffs),
                    )
                )

        for key in new_by_key:
            if key not in old_by_key:
                changes.append(
                    Change(
                        id=f"{sheet_name}:{key}",
                        object=key,
                        type=ADDED,
                        classification=MINOR,
                        category=category,
                        changes=f'Added in sheet "{sheet_name}"',
                    )
                )
        return changes

    @staticmethod
    def _index_rows(rows: list[Row], key_field: str | None) -> dict[str, Row]:
        # Later rows with a duplicate key replace earlier ones.
        indexed: dict[str, Row] = {}
        for index, row in enumerate(rows):
            indexed[row_key(row, key_field, index)] = row
        return indexed

    @staticmethod
    def _field_diffs(old_row: Row, new_row: Row) -> list[str]:
        diffs: list[str] = []
        for field_name in dict.fromkeys([*old_row, *new_row]):
            old_value = normalize_value(old_row.get(field_name))
            new_value = normalize_value(new_row.get(field_name))
            if not values_equal(old_value, new_value):
                diffs.append(
                    f'{field_name}: "{render_value(old_value)}" → "{render_value(new_value)}"'
                )
        return diffs

    def _summarize(self, diffs: list[str]) -> str:
        text = " | ".join(diffs[: self._max_listed_diffs])
        hidden = len(diffs) - self._max_listed_diffs
        if hidden > 0:
            text += f" (+{hidden} more)"
        return text
