from pathlib import Path

import pytest

from catalog_diff.extraction.exceptions import ParseError
from catalog_diff.extraction.markup_adapter import MarkupExtractor


def _write(tmp_path: Path, content: str, name: str = "catalog.xml") -> Path:
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return path


class TestValidate:
    def test_well_formed_document(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "<catalog><item id='1'/></catalog>")

        result = MarkupExtractor().validate(path)

        assert result == {"parsed": True, "rootTag": "catalog"}

    def test_malformed_document_raises(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "<catalog><item></catalog>")

        with pytest.raises(ParseError, match="Invalid XML"):
            MarkupExtractor().validate(path)

    def test_empty_file_raises(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "")

        with pytest.raises(ParseError):
            MarkupExtractor().validate(path)

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ParseError, match="Cannot read"):
            MarkupExtractor().validate(tmp_path / "gone.xml")


class TestExtract:
    def test_returns_empty_snapshot(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "<catalog><item id='1'/></catalog>")

        snapshot = MarkupExtractor().extract(path)

        assert snapshot.sheets == {}
