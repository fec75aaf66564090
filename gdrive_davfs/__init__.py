__version__ = "0.1.0"

# Public API exports
from .cache import CacheKey, Found, LookupCache
from .config import (
    AppConfig,
    CacheConfig,
    ConnectionConfig,
    GoogleDriveConfig,
    LogConfig,
    StoreConfig,
    load_config,
)
from .errors import (
    AlreadyExistsError,
    DriveFSError,
    ErrorKind,
    InvalidParentError,
    NotFoundError,
    StallTimeoutError,
    TransientStoreError,
    UnsupportedOperationError,
)
from .filesystem import DriveFileSystem
from .handles import ReadHandle, WriteHandle
from .listing import DirectoryLister
from .remote_store import Metadata, RemoteObject, RemoteStore
from .resolver import PathResolver


def get_google_drive_store():
    """Lazy loader for GoogleDriveStore.

    Returns the GoogleDriveStore class, importing it on first use so that
    importing gdrive_davfs does not require google-api-python-client.
    """
    from .gdrive_store import GoogleDriveStore

    return GoogleDriveStore


__all__ = [
    "__version__",
    # Configuration
    "AppConfig",
    "GoogleDriveConfig",
    "CacheConfig",
    "ConnectionConfig",
    "StoreConfig",
    "LogConfig",
    "load_config",
    # Errors
    "ErrorKind",
    "DriveFSError",
    "NotFoundError",
    "AlreadyExistsError",
    "InvalidParentError",
    "StallTimeoutError",
    "UnsupportedOperationError",
    "TransientStoreError",
    # Store
    "RemoteStore",
    "RemoteObject",
    "Metadata",
    "get_google_drive_store",
    # Core
    "LookupCache",
    "CacheKey",
    "Found",
    "PathResolver",
    "DirectoryLister",
    "ReadHandle",
    "WriteHandle",
    "DriveFileSystem",
]
