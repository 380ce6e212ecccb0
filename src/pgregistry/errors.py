from abc import ABC


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """


class NotFoundError(UserError):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str = "Document not found") -> None:
        super().__init__(message)


class ValidationError(UserError):
    """Raised when user input fails validation."""


class StorageNotConfiguredError(UserError):
    """Raised when an endpoint needs ImageKit but no credentials are configured."""

    def __init__(self, message: str = "ImageKit not configured on server") -> None:
        super().__init__(message)


class AllocationError(Exception):
    """Raised when the serial counter could not be incremented.

    Resident creation is aborted when this happens, no record is written.
    """


class ExternalStorageError(Exception):
    """Raised by the ImageKit client when a remote call fails.

    Never reaches API callers: record operations log it and carry on.
    """
