from pathlib import Path

from catalog_diff.extraction.base import BaseSnapshotExtractor
from catalog_diff.extraction.exceptions import UnsupportedFileTypeError, UnsupportedFormatError
from catalog_diff.extraction.markup_adapter import MarkupExtractor
from catalog_diff.extraction.models import STRUCTURED_MARKUP, WORKBOOK
from catalog_diff.extraction.workbook_adapter import OpenpyxlWorkbookExtractor

FORMAT_BY_EXTENSION: dict[str, str] = {
    ".xlsx": WORKBOOK,
    ".xml": STRUCTURED_MARKUP,
}


def accepted_extension(filename: str) -> str:
    """Return the lower-cased extension of an acceptable upload name.

    Raises:
        UnsupportedFileTypeError: if the extension is not a workbook or markup type.
    """
    ext = Path(filename or "").suffix.lower()
    if ext not in FORMAT_BY_EXTENSION:
        allowed = " or ".join(FORMAT_BY_EXTENSION)
        raise UnsupportedFileTypeError(f"Only {allowed} allowed")
    return ext


def detect_format(path: Path) -> str:
    """Map a stored file to its declared format by extension."""
    file_format = FORMAT_BY_EXTENSION.get(path.suffix.lower())
    if file_format is None:
        raise UnsupportedFormatError(f"Unsupported file extension '{path.suffix}'")
    return file_format


class ExtractorFactory:
    """Creates the extractor adapter for a file format."""

    ADAPTERS: dict[str, type[BaseSnapshotExtractor]] = {
        WORKBOOK: OpenpyxlWorkbookExtractor,
        STRUCTURED_MARKUP: MarkupExtractor,
    }

    @classmethod
    def create(cls, file_format: str) -> BaseSnapshotExtractor:
        adapter_cls = cls.ADAPTERS.get(file_format)
        if adapter_cls is None:
            raise UnsupportedFormatError(
                f"Unknown file format '{file_format}'. Choose from: {list(cls.ADAPTERS)}"
            )
        return adapter_cls()
