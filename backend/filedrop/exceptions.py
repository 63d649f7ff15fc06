"""File store exceptions.

Routes catch these and map them to HTTP status codes.
"""


class FileStoreError(Exception):
    """Base exception for file store operations."""
    pass


class DirectoryInitError(FileStoreError):
    """Storage directory could not be created."""

    def __init__(self, directory: str, reason: str) -> None:
        super().__init__(f"Failed to create uploads directory {directory}: {reason}")
        self.directory = directory


class IndexCorruptError(FileStoreError):
    """Metadata file exists but cannot be read or parsed."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Failed to parse metadata {path}: {reason}")
        self.path = path


class BlobWriteError(FileStoreError):
    """Upload content could not be written to disk."""
    pass


class IndexPersistError(FileStoreError):
    """Metadata file could not be written."""
    pass


class NotFoundError(FileStoreError):
    """No record with this id, or its blob is missing on disk."""

    def __init__(self, file_id: str, reason: str = "file not found") -> None:
        super().__init__(f"{reason}: {file_id}")
        self.file_id = file_id
