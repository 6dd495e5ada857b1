import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import RedirectResponse, Response
from fastapi.templating import Jinja2Templates
from starlette.datastructures import UploadFile
from starlette.middleware.sessions import SessionMiddleware

from client_registry.controller import (
    LIST_URL,
    MSG_INVALID_PARAMETER,
    ClientController,
    Failure,
    FlashMessage,
    Outcome,
    PhotoFile,
    Redirect,
    UploadedPhoto,
    View,
)
from client_registry.db import init_db
from client_registry.dependencies import get_client_controller, get_session_id
from client_registry.flash import flash, pop_flashes
from config import get_settings

# Get settings and configure logging before anything else
settings = get_settings()
settings.configure_logging()

logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown."""
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Photo storage root: {settings.storage_root}")

    settings.storage_root.mkdir(parents=True, exist_ok=True)
    init_db()

    yield

    logger.info("Shutting down application")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
)

# Signed cookie session: holds the session id and pending flash messages
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.secret_key,
    session_cookie=settings.session_cookie,
    max_age=settings.session_max_age,
)


def respond(request: Request, outcome: Outcome) -> Response:
    """Translate a controller outcome into an HTTP response."""
    if isinstance(outcome, Redirect):
        flash(request.session, outcome.messages)
        return RedirectResponse(outcome.url, status_code=303)

    if isinstance(outcome, View):
        context = dict(outcome.context)
        context["messages"] = pop_flashes(request.session) + outcome.messages
        return templates.TemplateResponse(request, outcome.template, context)

    if isinstance(outcome, PhotoFile):
        return Response(
            content=outcome.content,
            media_type=outcome.media_type,
            headers={"Content-Disposition": f'attachment; filename="{outcome.filename}"'},
        )

    if isinstance(outcome, Failure):
        raise HTTPException(status_code=outcome.status_code, detail=outcome.detail)

    raise TypeError(f"Unsupported outcome: {outcome!r}")


@app.exception_handler(RequestValidationError)
async def redirect_on_invalid_parameter(request: Request, exc: RequestValidationError) -> RedirectResponse:
    """Send malformed ids and page numbers back to the listing."""
    logger.info(f"Rejected {request.method} {request.url.path}: {exc.errors()}")
    flash(request.session, [FlashMessage("error", MSG_INVALID_PARAMETER)])
    return RedirectResponse(LIST_URL, status_code=303)


async def read_upload(upload: UploadFile, limit: Optional[int]) -> bytes:
    """Read an uploaded file, stopping one byte past ``limit``.

    The extra byte lets the size check reject oversize files without
    buffering them whole.
    """
    if limit is None:
        return await upload.read()
    return await upload.read(limit + 1)


@app.get("/health")
def health_check() -> dict[str, str]:
    """Simple health-check endpoint."""
    return {
        "status": "ok",
        "environment": settings.environment,
        "version": settings.app_version,
    }


@app.get("/")
async def index() -> RedirectResponse:
    return RedirectResponse(LIST_URL, status_code=303)


@app.get("/uploads/{filename:path}")
async def serve_photo(
    filename: str,
    request: Request,
    controller: ClientController = Depends(get_client_controller),
) -> Response:
    """Download a client photo as an attachment."""
    return respond(request, controller.serve_photo(filename))


@app.get("/ver/{client_id}")
async def show_client(
    client_id: int,
    request: Request,
    controller: ClientController = Depends(get_client_controller),
) -> Response:
    return respond(request, controller.show_client(client_id))


@app.get(LIST_URL)
async def list_clients(
    request: Request,
    page: int = 0,
    controller: ClientController = Depends(get_client_controller),
) -> Response:
    return respond(request, controller.list_clients(page))


@app.get("/form")
async def new_client_form(
    request: Request,
    session_id: str = Depends(get_session_id),
    controller: ClientController = Depends(get_client_controller),
) -> Response:
    return respond(request, controller.new_form(session_id))


@app.get("/form/{client_id}")
async def edit_client_form(
    client_id: int,
    request: Request,
    session_id: str = Depends(get_session_id),
    controller: ClientController = Depends(get_client_controller),
) -> Response:
    return respond(request, controller.edit_form(session_id, client_id))


@app.post("/form")
async def save_client(
    request: Request,
    session_id: str = Depends(get_session_id),
    controller: ClientController = Depends(get_client_controller),
) -> Response:
    """Save the client under edit.

    The body is multipart: the record fields plus an optional ``file`` part
    holding the photo. An empty file part counts as no upload.
    """
    form = await request.form()
    fields = {key: value for key, value in form.items() if isinstance(value, str)}

    photo = None
    upload = form.get("file")
    if isinstance(upload, UploadFile) and upload.filename:
        content = await read_upload(upload, controller.max_upload_size)
        if content:
            photo = UploadedPhoto(
                filename=upload.filename,
                content=content,
                content_type=upload.content_type,
            )
            logger.debug(f"Received photo {upload.filename!r}, {len(content)} bytes")

    return respond(request, controller.save(session_id, fields, photo))


@app.api_route("/eliminar/{client_id}", methods=["GET", "POST"])
async def delete_client(
    client_id: int,
    request: Request,
    controller: ClientController = Depends(get_client_controller),
) -> Response:
    return respond(request, controller.delete(client_id))
