class ExtractionError(Exception):
    """Base exception for all snapshot extraction errors."""


class UnsupportedFileTypeError(ExtractionError):
    """Raised at submission time for a file extension the service does not accept."""


class UnsupportedFormatError(ExtractionError):
    """Raised when no extractor exists for a declared file format."""


class ParseError(ExtractionError):
    """Raised when a file fails structural validation or cannot be parsed."""
