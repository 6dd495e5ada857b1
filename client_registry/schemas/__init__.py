"""Form schemas and draft types."""

from .client import ClientDraft, ClientForm, form_errors

__all__ = ["ClientDraft", "ClientForm", "form_errors"]
