from abc import ABC, abstractmethod
from pathlib import Path

from catalog_diff.extraction.models import Snapshot


class BaseSnapshotExtractor(ABC):
    """Contract for all file-format extraction adapters."""

    FORMAT: str = ""

    @abstractmethod
    def validate(self, path: Path) -> dict[str, object]:
        """Check that the file is structurally acceptable.

        Args:
            path: Location of the stored upload.

        Returns:
            Validation details recorded on the upload (e.g. sheet count).

        Raises:
            ParseError: if the file cannot be parsed or is structurally empty.
        """

    @abstractmethod
    def extract(self, path: Path) -> Snapshot:
        """Convert the file into a Snapshot.

        Raises:
            ParseError: if the file cannot be parsed.
        """
