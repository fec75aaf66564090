"""
Error taxonomy for the Drive filesystem layer.

Every failure raised by this package carries an ``ErrorKind`` so that a
protocol layer can branch on the kind of failure. Each concrete class also
derives from the closest builtin exception, so callers that only know about
``FileNotFoundError`` and friends keep working.
"""

import io
from enum import Enum


class ErrorKind(Enum):
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    INVALID_PARENT = "invalid_parent"
    TIMEOUT = "timeout"
    UNSUPPORTED = "unsupported"
    TRANSIENT_STORE = "transient_store"


class DriveFSError(Exception):
    """Base class for all errors raised by gdrive_davfs."""

    kind: ErrorKind


class NotFoundError(DriveFSError, FileNotFoundError):
    """No matching child at some step of path resolution."""

    kind = ErrorKind.NOT_FOUND


class AlreadyExistsError(DriveFSError, FileExistsError):
    """A create targeted a path that already resolves to an object."""

    kind = ErrorKind.ALREADY_EXISTS


class InvalidParentError(DriveFSError, NotADirectoryError):
    """The parent path is missing or is not a container."""

    kind = ErrorKind.INVALID_PARENT


class StallTimeoutError(DriveFSError, TimeoutError):
    """A download stream delivered no bytes within the stall timeout."""

    kind = ErrorKind.TIMEOUT


class UnsupportedOperationError(DriveFSError, io.UnsupportedOperation):
    """Arbitrary seeks, partial writes, renames and similar requests."""

    kind = ErrorKind.UNSUPPORTED


class TransientStoreError(DriveFSError, OSError):
    """A network or remote-store failure not otherwise classified."""

    kind = ErrorKind.TRANSIENT_STORE

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status
