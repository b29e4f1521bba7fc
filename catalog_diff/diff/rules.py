"""Keyword rules that tag changes with a category and a severity."""

import re

from catalog_diff.diff.models import MAJOR, PATCH

DEFAULT_CATEGORY = "Publikumsanlagen"

# Checked in order; the first category with a matching keyword wins.
CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Fahrbahn", ("fahrbahn", "fb")),
    ("Fahrstrom", ("fahrstrom", "fs")),
    ("Sicherungsanlagen", ("sicherung", "sa")),
    ("Kunstbauten", ("kunst", "kb")),
    ("Hochbau", ("hochbau", "hb")),
)

_MAJOR_PATTERN = re.compile(r"geometr|koord|coord|epsg|shape")


def infer_category(sheet_name: str) -> str:
    name = (sheet_name or "").lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in name for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


def infer_classification(sheet_name: str, diffs: list[str]) -> str:
    """Severity of a modified row: major when geometry or reference-system data moved."""
    text = " ".join([sheet_name or "", *diffs]).lower()
    return MAJOR if _MAJOR_PATTERN.search(text) else PATCH
