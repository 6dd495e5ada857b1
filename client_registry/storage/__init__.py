"""Storage module for client photos."""

from .base import InvalidFileNameError, StorageClient, StorageError
from .local import LocalStorageClient

__all__ = ["StorageClient", "StorageError", "InvalidFileNameError", "LocalStorageClient"]
