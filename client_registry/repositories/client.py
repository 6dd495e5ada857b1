"""Client repository: persistence of client records and their invoices."""

import logging
from typing import Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from client_registry.models.db import Client
from client_registry.pagination import Page

logger = logging.getLogger(__name__)

# Columns copied onto an existing row when a client is updated
EDITABLE_FIELDS = ("name", "last_name", "email", "created_at", "photo")


class RepositoryError(Exception):
    """Raised when the record store fails to complete a write."""
    pass


class ClientRepository(Protocol):
    """Interface for client record storage.

    The repository owns identity assignment: a client saved without an ``id``
    is inserted and receives one.
    """

    def find_by_id(self, client_id: int) -> Optional[Client]:
        """Return the client with ``client_id``, or None."""
        ...

    def find_by_id_with_invoices(self, client_id: int) -> Optional[Client]:
        """Return the client with its invoices loaded in the same query, or None."""
        ...

    def find_page(self, page: int, size: int) -> Page[Client]:
        """Return one page of clients ordered by id."""
        ...

    def save(self, client: Client) -> Client:
        """Insert or update ``client`` and return the persisted instance.

        Raises:
            RepositoryError: If the write fails.
        """
        ...

    def delete_by_id(self, client_id: int) -> bool:
        """Delete a client and its invoices.

        Returns:
            bool: True if the client was deleted, False if not found.

        Raises:
            RepositoryError: If the write fails.
        """
        ...


class ClientDBRepository(ClientRepository):
    """SQLAlchemy-based implementation of ClientRepository."""

    def __init__(self, db: Session):
        """Initialize the repository with a database session.

        Args:
            db: SQLAlchemy session for database operations
        """
        self.db = db

    def find_by_id(self, client_id: int) -> Optional[Client]:
        client = self.db.query(Client).filter(Client.id == client_id).first()
        if client is None:
            logger.debug(f"Client not found: {client_id}")
        return client

    def find_by_id_with_invoices(self, client_id: int) -> Optional[Client]:
        return (
            self.db.query(Client)
            .options(joinedload(Client.invoices))
            .filter(Client.id == client_id)
            .first()
        )

    def find_page(self, page: int, size: int) -> Page[Client]:
        if size <= 0:
            raise ValueError("size must be positive")
        if page < 0:
            raise ValueError("page must not be negative")

        total = self.db.query(Client).count()
        content = (
            self.db.query(Client)
            .order_by(Client.id)
            .offset(page * size)
            .limit(size)
            .all()
        )
        logger.debug(f"Loaded page {page} ({len(content)} of {total} clients)")
        return Page(content=content, number=page, size=size, total_elements=total)

    def save(self, client: Client) -> Client:
        try:
            target = None
            if client.id is not None:
                target = self.db.query(Client).filter(Client.id == client.id).first()

            if target is None:
                self.db.add(client)
                target = client
            elif target is not client:
                for name in EDITABLE_FIELDS:
                    setattr(target, name, getattr(client, name))

            self.db.commit()
            self.db.refresh(target)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to save client {client.id}: {e}")
            raise RepositoryError(f"Failed to save client: {e}") from e

        logger.info(f"Saved client: {target.id}")
        return target

    def delete_by_id(self, client_id: int) -> bool:
        client = self.find_by_id(client_id)
        if client is None:
            logger.warning(f"Cannot delete non-existent client: {client_id}")
            return False

        try:
            self.db.delete(client)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to delete client {client_id}: {e}")
            raise RepositoryError(f"Failed to delete client: {e}") from e

        logger.info(f"Deleted client: {client_id}")
        return True
