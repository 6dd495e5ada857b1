"""Repository implementations for data access."""

from .client import ClientDBRepository, ClientRepository, RepositoryError

__all__ = [
    "ClientRepository",
    "ClientDBRepository",
    "RepositoryError",
]
