"""Client request orchestration.

``ClientController`` decides what each client operation does against the
record store and photo storage and returns a typed outcome. It knows nothing
about HTTP; ``client_registry.main`` turns the outcomes into responses.

Photo side effects follow two rules:

* everything needed for cleanup (the old photo name) is read before the
  mutation that would make it unavailable;
* blob cleanup is best effort: a failed delete is logged and reported as
  ``False`` but never undoes or blocks the record mutation.
"""

import logging
import mimetypes
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError

from client_registry.pagination import DEFAULT_WINDOW_SIZE, render_page
from client_registry.repositories.client import ClientRepository, RepositoryError
from client_registry.schemas.client import ClientDraft, ClientForm, form_errors
from client_registry.sessions import EditSessionStore
from client_registry.storage.base import InvalidFileNameError, StorageClient, StorageError

logger = logging.getLogger(__name__)

LIST_URL = "/listar"
DEFAULT_PAGE_SIZE = 4

TITLE_LIST = "Listado de clientes"
TITLE_NEW = "Formulario de cliente"
TITLE_EDIT = "Editar cliente"

MSG_CLIENT_NOT_FOUND = "El cliente no existe en la base de datos"
MSG_ID_ZERO = "El id del cliente no puede ser cero"
MSG_ID_UNKNOWN = "El id del cliente no existe en la BDD"
MSG_CREATED = "Cliente creado con exito"
MSG_UPDATED = "Cliente editado con exito"
MSG_DELETED = "Cliente eliminado con exito"
MSG_UPLOAD_FAILED = "No se pudo subir la foto, el cliente no fue guardado"
MSG_SAVE_FAILED = "No se pudo guardar el cliente"
MSG_DELETE_FAILED = "No se pudo eliminar el cliente"
MSG_INVALID_PARAMETER = "Parametro de la peticion no valido"


@dataclass(frozen=True)
class FlashMessage:
    category: str
    text: str


@dataclass
class View:
    """Render ``template`` with ``context``."""

    template: str
    context: Dict[str, Any]
    messages: List[FlashMessage] = field(default_factory=list)


@dataclass
class Redirect:
    """Redirect to ``url``, carrying flash messages to the next request."""

    url: str
    messages: List[FlashMessage] = field(default_factory=list)


@dataclass
class PhotoFile:
    filename: str
    content: bytes
    media_type: str


@dataclass
class Failure:
    """An operation that could not be resolved, e.g. an unknown photo."""

    status_code: int
    detail: str


Outcome = Union[View, Redirect, PhotoFile, Failure]


@dataclass(frozen=True)
class UploadedPhoto:
    """A photo received with the client form."""

    filename: str
    content: bytes
    content_type: Optional[str] = None


class ClientController:
    """Orchestrates client listing, editing, deletion and photo handling."""

    def __init__(
        self,
        repository: ClientRepository,
        storage: StorageClient,
        edit_sessions: EditSessionStore,
        page_size: int = DEFAULT_PAGE_SIZE,
        window_size: int = DEFAULT_WINDOW_SIZE,
        max_upload_size: Optional[int] = None,
    ):
        self.repository = repository
        self.storage = storage
        self.edit_sessions = edit_sessions
        self.page_size = page_size
        self.window_size = window_size
        self.max_upload_size = max_upload_size

    # Read-only operations

    def list_clients(self, page: int = 0) -> View:
        page = max(page, 0)
        result = self.repository.find_page(page, self.page_size)
        render = render_page(result, f"{LIST_URL}?page={{page}}", self.window_size)
        return View(
            "listar.html",
            {"title": TITLE_LIST, "clients": result.content, "page": render},
        )

    def show_client(self, client_id: int) -> Outcome:
        client = self.repository.find_by_id_with_invoices(client_id)
        if client is None:
            logger.info(f"Detail requested for unknown client {client_id}")
            return Redirect(LIST_URL, [FlashMessage("error", MSG_CLIENT_NOT_FOUND)])
        return View(
            "ver.html",
            {"title": f"Detalle cliente: {client.name}", "client": client},
        )

    def serve_photo(self, filename: str) -> Outcome:
        """Load a stored photo, or fail with 404 when it cannot be resolved."""
        try:
            content = self.storage.load(filename)
        except (InvalidFileNameError, FileNotFoundError) as e:
            logger.warning(f"Photo {filename!r} not served: {e}")
            return Failure(404, "Foto no encontrada")
        except StorageError as e:
            logger.error(f"Photo {filename!r} could not be read: {e}")
            return Failure(500, "No se pudo leer la foto")

        media_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
        return PhotoFile(filename=filename, content=content, media_type=media_type)

    # Edit lifecycle

    def new_form(self, session_id: str) -> View:
        draft = ClientDraft.new()
        self.edit_sessions.begin(session_id, draft)
        return self._form_view(draft)

    def edit_form(self, session_id: str, client_id: int) -> Outcome:
        if client_id <= 0:
            return Redirect(LIST_URL, [FlashMessage("error", MSG_ID_ZERO)])

        client = self.repository.find_by_id(client_id)
        if client is None:
            return Redirect(LIST_URL, [FlashMessage("error", MSG_ID_UNKNOWN)])

        draft = ClientDraft.from_entity(client)
        self.edit_sessions.begin(session_id, draft)
        return self._form_view(draft)

    def save(
        self,
        session_id: str,
        fields: Mapping[str, Optional[str]],
        photo: Optional[UploadedPhoto] = None,
    ) -> Outcome:
        """Validate and persist the session's draft, reconciling its photo.

        Any failure redisplays the form and keeps the draft in the session;
        only a committed save completes the edit session.
        """
        draft = self.edit_sessions.current(session_id) or ClientDraft()
        draft = draft.bind(fields)

        form = None
        try:
            form = ClientForm.model_validate(draft.form_data())
            errors: Dict[str, str] = {}
        except ValidationError as e:
            errors = form_errors(e)

        if (
            photo is not None
            and self.max_upload_size is not None
            and len(photo.content) > self.max_upload_size
        ):
            errors["file"] = f"la foto no puede superar {self.max_upload_size} bytes"

        if form is None or errors:
            logger.debug(f"Client form rejected: {sorted(errors)}")
            self.edit_sessions.begin(session_id, draft)
            return self._form_view(draft, errors=errors)

        messages: List[FlashMessage] = []
        previous_photo = None
        new_photo = None

        # Store the new photo, save the record, then drop the old photo
        if photo is not None:
            previous_photo = self._persisted_photo(draft)
            try:
                new_photo = self.storage.store(photo.content, photo.filename)
            except (StorageError, ValueError) as e:
                logger.error(f"Upload of {photo.filename!r} failed: {e}")
                self.edit_sessions.begin(session_id, draft)
                return self._form_view(
                    draft, messages=[FlashMessage("error", MSG_UPLOAD_FAILED)]
                )
            messages.append(
                FlashMessage("info", f"Has subido correctamente '{new_photo}'")
            )
            draft = replace(draft, photo=new_photo)

        creating = not draft.is_existing
        try:
            saved = self.repository.save(draft.to_entity(form))
        except RepositoryError:
            if new_photo is not None:
                self._discard_photo(new_photo)
                draft = replace(draft, photo=previous_photo)
            self.edit_sessions.begin(session_id, draft)
            return self._form_view(draft, messages=[FlashMessage("error", MSG_SAVE_FAILED)])

        if previous_photo and previous_photo != new_photo:
            self._discard_photo(previous_photo)

        self.edit_sessions.complete(session_id)
        logger.info(f"Client {saved.id} {'created' if creating else 'updated'}")

        messages.append(FlashMessage("success", MSG_CREATED if creating else MSG_UPDATED))
        return Redirect(LIST_URL, messages)

    def delete(self, client_id: int) -> Redirect:
        if client_id <= 0:
            return Redirect(LIST_URL)

        # Capture the photo reference before the row disappears
        client = self.repository.find_by_id(client_id)
        if client is None:
            return Redirect(LIST_URL, [FlashMessage("error", MSG_CLIENT_NOT_FOUND)])
        photo = client.photo

        try:
            deleted = self.repository.delete_by_id(client_id)
        except RepositoryError:
            return Redirect(LIST_URL, [FlashMessage("error", MSG_DELETE_FAILED)])
        if not deleted:
            return Redirect(LIST_URL, [FlashMessage("error", MSG_CLIENT_NOT_FOUND)])

        messages = [FlashMessage("success", MSG_DELETED)]
        if photo and self._discard_photo(photo):
            messages.append(FlashMessage("info", f"Foto: {photo} eliminada con exito!"))
        return Redirect(LIST_URL, messages)

    # Helpers

    def _form_view(
        self,
        draft: ClientDraft,
        errors: Optional[Dict[str, str]] = None,
        messages: Optional[List[FlashMessage]] = None,
    ) -> View:
        title = TITLE_EDIT if draft.is_existing else TITLE_NEW
        return View(
            "form.html",
            {"title": title, "client": draft, "errors": errors or {}},
            messages or [],
        )

    def _persisted_photo(self, draft: ClientDraft) -> Optional[str]:
        """Photo currently referenced by the stored record the draft edits."""
        if not draft.is_existing:
            return None
        existing = self.repository.find_by_id(draft.id)
        if existing is None:
            return draft.photo
        return existing.photo or None

    def _discard_photo(self, name: str) -> bool:
        """Best-effort photo removal; failures are logged, never raised."""
        try:
            removed = self.storage.delete(name)
        except StorageError as e:
            logger.warning(f"Could not delete photo {name}: {e}")
            return False
        if not removed:
            logger.warning(f"Photo {name} was already missing from storage")
        return removed
