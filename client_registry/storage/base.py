"""Storage client interface for client photos."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class StorageClient(Protocol):
    """Abstract interface for photo storage operations.

    Photos are addressed by the unique name generated when they are stored.
    Implementations can use various backends such as the local filesystem,
    S3, Azure Blob Storage, etc.
    """

    def store(self, content: bytes, filename: str) -> str:
        """Store an uploaded photo.

        Args:
            content: Raw file bytes.
            filename: Original name of the uploaded file.

        Returns:
            str: Generated unique name under which the photo was stored.

        Raises:
            StorageError: If the photo cannot be saved.
        """
        ...

    def load(self, name: str) -> bytes:
        """Load a stored photo.

        Args:
            name: Generated name returned by ``store``.

        Returns:
            bytes: Raw file content.

        Raises:
            InvalidFileNameError: If ``name`` cannot be resolved to a location.
            FileNotFoundError: If the photo does not exist.
            StorageError: If the photo cannot be read.
        """
        ...

    def delete(self, name: str) -> bool:
        """Delete a stored photo.

        Args:
            name: Generated name returned by ``store``.

        Returns:
            bool: True if a file was removed, False if there was nothing to remove.

        Raises:
            StorageError: If the file exists but cannot be removed.
        """
        ...


class StorageError(Exception):
    """Base exception for storage-related errors."""
    pass


class InvalidFileNameError(StorageError):
    """Raised when a file name does not resolve to a location inside storage."""
    pass
