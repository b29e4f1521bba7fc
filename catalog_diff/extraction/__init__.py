from catalog_diff.extraction.base import BaseSnapshotExtractor
from catalog_diff.extraction.factory import ExtractorFactory, accepted_extension, detect_format
from catalog_diff.extraction.models import Snapshot

__all__ = [
    "BaseSnapshotExtractor",
    "ExtractorFactory",
    "Snapshot",
    "accepted_extension",
    "detect_format",
]
