import xml.etree.ElementTree as ElementTree
from pathlib import Path

from catalog_diff.extraction.base import BaseSnapshotExtractor
from catalog_diff.extraction.exceptions import ParseError
from catalog_diff.extraction.models import STRUCTURED_MARKUP, Snapshot
from catalog_diff.logging.logger import Log


class MarkupExtractor(BaseSnapshotExtractor):
    """Accepts well-formed XML documents.

    Row extraction from markup is not implemented yet: a parsed document
    yields an empty sheet set, so its diff only reports deletions against
    the baseline.
    """

    FORMAT = STRUCTURED_MARKUP

    def validate(self, path: Path) -> dict[str, object]:
        root = self._parse(path)
        return {"parsed": True, "rootTag": root.tag}

    def extract(self, path: Path) -> Snapshot:
        Log.debug(f"Markup extraction for '{path.name}' returns an empty snapshot")
        return Snapshot()

    @staticmethod
    def _parse(path: Path) -> ElementTree.Element:
        try:
            return ElementTree.parse(path).getroot()
        except ElementTree.ParseError as exc:
            raise ParseError(f"Invalid XML in '{path.name}': {exc}") from exc
        except OSError as exc:
            raise ParseError(f"Cannot read '{path.name}': {exc}") from exc
