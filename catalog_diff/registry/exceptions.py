class RegistryError(Exception):
    """Base exception for upload registry errors."""


class UploadNotFoundError(RegistryError):
    """Raised when an upload id is unknown to the registry."""


class DuplicateUploadError(RegistryError):
    """Raised when an upload id is allocated twice."""


class InvalidStatusTransitionError(RegistryError):
    """Raised when a status change would leave a terminal state."""
