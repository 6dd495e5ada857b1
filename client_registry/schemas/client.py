"""Client form schema and the editable draft held between requests."""

from dataclasses import asdict, dataclass, replace
from datetime import date
from typing import Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from client_registry.models.db import Client

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

FORM_FIELDS = ("name", "last_name", "email", "created_at")

_MESSAGES = {
    "missing": "no puede estar vacío",
    "string_too_short": "no puede estar vacío",
    "string_too_long": "es demasiado largo",
    "string_pattern_mismatch": "debe ser una dirección de correo bien formada",
}
_DATE_MESSAGE = "debe ser una fecha con formato aaaa-mm-dd"


class ClientForm(BaseModel):
    """Validated client fields submitted from the form."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    created_at: date


def form_errors(exc: ValidationError) -> Dict[str, str]:
    """Flatten a ValidationError into one message per form field."""
    errors: Dict[str, str] = {}
    for error in exc.errors():
        field = str(error["loc"][0]) if error["loc"] else "__all__"
        if field in errors:
            continue
        if field == "created_at":
            errors[field] = _DATE_MESSAGE
        else:
            errors[field] = _MESSAGES.get(error["type"], error["msg"])
    return errors


@dataclass
class ClientDraft:
    """A client being created or edited.

    Form fields are kept as the raw submitted strings so that an invalid
    submission can be redisplayed exactly as typed.
    """

    id: Optional[int] = None
    name: str = ""
    last_name: str = ""
    email: str = ""
    created_at: str = ""
    photo: Optional[str] = None

    @classmethod
    def new(cls) -> "ClientDraft":
        return cls(created_at=date.today().isoformat())

    @classmethod
    def from_entity(cls, client: Client) -> "ClientDraft":
        return cls(
            id=client.id,
            name=client.name or "",
            last_name=client.last_name or "",
            email=client.email or "",
            created_at=client.created_at.isoformat() if client.created_at else "",
            photo=client.photo or None,
        )

    @property
    def is_existing(self) -> bool:
        return self.id is not None and self.id > 0

    def bind(self, fields: Mapping[str, Optional[str]]) -> "ClientDraft":
        """Return a copy with the submitted form fields applied.

        Only known form fields are bound; ``id`` and ``photo`` can never be
        overwritten from request data.
        """
        values = {
            name: (fields.get(name) or "")
            for name in FORM_FIELDS
            if name in fields
        }
        return replace(self, **values)

    def form_data(self) -> Dict[str, str]:
        data = asdict(self)
        return {name: data[name] for name in FORM_FIELDS}

    def to_entity(self, form: ClientForm) -> Client:
        return Client(
            id=self.id if self.is_existing else None,
            name=form.name,
            last_name=form.last_name,
            email=form.email,
            created_at=form.created_at,
            photo=self.photo or None,
        )
