from typing import Optional


class StorageError(Exception):
    """A remote blob could not be read or written."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class BlobNotFoundError(StorageError):
    pass


class BlobTooLargeError(StorageError):
    def __init__(self, path: str, size: int, max_size: int):
        super().__init__(
            f"{path} is {size} bytes, exceeds the {max_size} byte limit", path
        )
        self.size = size
        self.max_size = max_size


class SyncError(Exception):
    """A downloaded collection could not be turned into teams and activities."""
