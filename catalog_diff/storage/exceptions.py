class StorageError(Exception):
    """Base exception for persisted-document errors."""


class SnapshotNotFoundError(StorageError):
    """Raised when no snapshot has been written for an upload."""


class ChangeDocumentNotFoundError(StorageError):
    """Raised when no change document has been computed for an upload."""


class ChangeNotFoundError(StorageError):
    """Raised when a change id is not part of an upload's change document."""


class InvalidChangeStatusError(StorageError):
    """Raised when a review decision is outside pending|approved|rejected."""


class UploadTooLargeError(StorageError):
    """Raised when a submitted file exceeds the configured size bound."""
