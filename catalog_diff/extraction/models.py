from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Any

CellValue = str | int | float | bool | None | date | datetime | time
Row = dict[str, CellValue]

WORKBOOK = "workbook"
STRUCTURED_MARKUP = "structured-markup"


def to_jsonable(value: Any) -> Any:
    """Render temporal cell values as ISO-8601 strings; pass other scalars through."""
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return str(value)
    return value


@dataclass
class Snapshot:
    """Normalized extraction of one upload: sheet name -> ordered rows."""

    sheets: dict[str, list[Row]] = field(default_factory=dict)

    def sheet_summaries(self) -> list[dict[str, object]]:
        return [{"name": name, "rowCount": len(rows)} for name, rows in self.sheets.items()]

    def to_dict(self) -> dict[str, object]:
        return {
            "sheets": {
                name: [{key: to_jsonable(value) for key, value in row.items()} for row in rows]
                for name, rows in self.sheets.items()
            }
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Snapshot":
        """Build a snapshot from its persisted form, dropping malformed sheets."""
        raw_sheets = data.get("sheets") if isinstance(data, dict) else None
        if not isinstance(raw_sheets, dict):
            return cls()
        sheets: dict[str, list[Row]] = {}
        for name, rows in raw_sheets.items():
            if not isinstance(rows, list):
                continue
            sheets[str(name)] = [dict(row) for row in rows if isinstance(row, dict)]
        return cls(sheets=sheets)
