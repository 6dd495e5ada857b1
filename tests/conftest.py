"""Shared fixtures: in-memory database, temporary photo storage, test client."""

import io
from datetime import date

import pytest
from fastapi.testclient import TestClient
from PIL import Image as PILImage
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from client_registry.db import get_db
from client_registry.dependencies import get_edit_sessions, get_storage_client
from client_registry.main import app
from client_registry.models.db import Base, Client, Invoice
from client_registry.sessions import EditSessionStore
from client_registry.storage.local import LocalStorageClient


@pytest.fixture
def db_engine():
    """Create an in-memory SQLite engine shared across threads."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """Create a database session for testing."""
    SessionLocal = sessionmaker(bind=db_engine)
    session = SessionLocal()

    yield session

    session.close()


@pytest.fixture
def storage(tmp_path):
    """Photo storage rooted in a temporary directory."""
    return LocalStorageClient(storage_root=tmp_path / "uploads")


@pytest.fixture
def edit_sessions():
    return EditSessionStore()


@pytest.fixture
def client(db_session, storage, edit_sessions):
    """Test client with database, storage and session store overridden."""
    def _get_test_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_test_db
    app.dependency_overrides[get_storage_client] = lambda: storage
    app.dependency_overrides[get_edit_sessions] = lambda: edit_sessions

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def make_client(db_session):
    """Factory inserting a client row directly."""
    def _make(name="Andres", last_name="Guzman", email=None, photo=None, invoices=0):
        record = Client(
            name=name,
            last_name=last_name,
            email=email or f"{name.lower()}@correo.com",
            created_at=date(2024, 1, 15),
            photo=photo,
        )
        for i in range(invoices):
            record.invoices.append(Invoice(description=f"Factura {i + 1}", created_at=date(2024, 2, 1)))
        db_session.add(record)
        db_session.commit()
        db_session.refresh(record)
        return record

    return _make


class FakeClock:
    """Manually advanced clock for expiry tests."""

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def create_test_jpeg(width: int = 10, height: int = 10, seed: int = 0) -> bytes:
    """Create a small JPEG image.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        seed: Seed for generating different colored images.

    Returns:
        bytes: JPEG image data.
    """
    color = ((seed * 50) % 256, (seed * 100) % 256, (seed * 150) % 256)
    img = PILImage.new("RGB", (width, height), color=color)

    img_bytes = io.BytesIO()
    img.save(img_bytes, format="JPEG")
    return img_bytes.getvalue()
