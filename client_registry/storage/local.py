"""Local filesystem implementation of StorageClient."""
import logging
import re
import uuid
from pathlib import Path
from typing import Optional

from config import get_settings

from .base import InvalidFileNameError, StorageClient, StorageError

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_filename(filename: str) -> str:
    """Reduce an uploaded file name to a safe single path component."""
    # Browsers on Windows may send the full client-side path
    base = filename.replace("\\", "/").rsplit("/", 1)[-1]
    base = _UNSAFE_CHARS.sub("_", base).strip("._")
    return base or "photo"


class LocalStorageClient(StorageClient):
    """Local filesystem storage implementation.

    Stores photos as flat files in a configurable directory. Each photo is
    saved as ``<uuid4>_<original name>`` so uploads never collide.
    """

    def __init__(self, storage_root: Optional[str | Path] = None):
        """Initialize local storage client.

        Args:
            storage_root: Root directory for storing photos.
                         If not provided, uses the configured storage root from settings.
        """
        settings = get_settings()

        if storage_root is not None:
            self.storage_root = Path(storage_root)
        else:
            self.storage_root = settings.storage_root

        self._ensure_storage_dir()
        logger.info(f"Initialized LocalStorageClient with root: {self.storage_root}")

    def _ensure_storage_dir(self) -> None:
        """Ensure the storage directory exists."""
        try:
            self.storage_root.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Ensured storage directory exists: {self.storage_root}")
        except OSError as e:
            logger.error(f"Failed to create storage directory: {e}")
            raise StorageError(f"Failed to create storage directory: {e}")

    def resolve(self, name: str) -> Path:
        """Resolve a stored name to its path inside the storage root.

        Raises:
            InvalidFileNameError: If the name is empty or points outside the root.
        """
        if not name or not name.strip():
            raise InvalidFileNameError("File name cannot be empty")
        if "/" in name or "\\" in name or name in (".", ".."):
            raise InvalidFileNameError(f"Invalid file name: {name!r}")

        root = self.storage_root.resolve()
        path = (root / name).resolve()
        if path.parent != root:
            raise InvalidFileNameError(f"Invalid file name: {name!r}")
        return path

    def store(self, content: bytes, filename: str) -> str:
        """Write an uploaded photo under a freshly generated name.

        Raises:
            ValueError: If the content is empty.
            StorageError: If the file cannot be written.
        """
        if not content:
            raise ValueError("Photo content cannot be empty")

        unique_name = f"{uuid.uuid4()}_{sanitize_filename(filename)}"
        file_path = self.storage_root / unique_name

        try:
            file_path.write_bytes(content)
        except OSError as e:
            logger.error(f"Failed to store photo {filename!r}: {e}")
            raise StorageError(f"Failed to store photo: {e}")

        logger.info(f"Stored photo {filename!r} as {unique_name}")
        return unique_name

    def load(self, name: str) -> bytes:
        path = self.resolve(name)

        if not path.is_file():
            logger.warning(f"Photo not found: {name}")
            raise FileNotFoundError(f"Photo not found: {name}")

        try:
            return path.read_bytes()
        except OSError as e:
            logger.error(f"Failed to read photo from {path}: {e}")
            raise StorageError(f"Failed to read photo: {e}")

    def delete(self, name: str) -> bool:
        path = self.resolve(name)

        if not path.is_file():
            logger.debug(f"Nothing to delete for photo: {name}")
            return False

        try:
            path.unlink()
        except OSError as e:
            logger.error(f"Failed to delete photo {path}: {e}")
            raise StorageError(f"Failed to delete photo: {e}")

        logger.info(f"Deleted photo: {name}")
        return True
