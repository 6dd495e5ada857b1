"""Database models for the client registry."""

from .db import Base, Client, Invoice

__all__ = ["Base", "Client", "Invoice"]
