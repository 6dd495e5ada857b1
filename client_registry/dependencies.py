"""FastAPI dependency injection configuration."""

import logging

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from client_registry.controller import ClientController
from client_registry.db import get_db
from client_registry.repositories import ClientDBRepository, ClientRepository
from client_registry.sessions import EditSessionStore, ensure_session_id
from client_registry.storage.base import StorageClient
from client_registry.storage.local import LocalStorageClient
from config import get_settings

logger = logging.getLogger(__name__)


# Global instance for storage client
_storage_client: StorageClient | None = None

# Global draft store shared by all requests, keyed by session id
_edit_sessions: EditSessionStore | None = None


def get_client_repository(db: Session = Depends(get_db)) -> ClientRepository:
    """Get a ClientDBRepository bound to the request's database session."""
    return ClientDBRepository(db)


def get_storage_client() -> StorageClient:
    """Get the photo storage client.

    Only local filesystem storage is implemented; the root directory comes
    from the STORAGE_ROOT setting.
    """
    global _storage_client

    if _storage_client is None:
        settings = get_settings()
        _storage_client = LocalStorageClient()
        logger.info(f"Created local storage client with root: {settings.storage_root}")

    return _storage_client


def get_edit_sessions() -> EditSessionStore:
    """Get the process-wide edit session store."""
    global _edit_sessions

    if _edit_sessions is None:
        settings = get_settings()
        _edit_sessions = EditSessionStore(
            ttl_seconds=settings.session_max_age,
            max_sessions=settings.edit_session_limit,
        )
    return _edit_sessions


def get_session_id(request: Request) -> str:
    """Get the caller's session id from the signed session cookie."""
    return ensure_session_id(request.session)


def get_client_controller(
    repository: ClientRepository = Depends(get_client_repository),
    storage: StorageClient = Depends(get_storage_client),
    edit_sessions: EditSessionStore = Depends(get_edit_sessions),
) -> ClientController:
    """Assemble the controller for one request."""
    settings = get_settings()
    return ClientController(
        repository=repository,
        storage=storage,
        edit_sessions=edit_sessions,
        page_size=settings.page_size,
        window_size=settings.pagination_window,
        max_upload_size=settings.max_upload_size,
    )
