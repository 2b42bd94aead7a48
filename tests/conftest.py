"""Pytest fixtures: in-memory SQLite, an in-memory blob store and a recording notifier."""
import os
from io import BytesIO
from typing import Any, Dict, Generator, List

# settings are read at import time; keep the real database and Brevo out of tests
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BREVO_API_KEY"] = ""

import pytest
from PIL import Image
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.exceptions import NotificationFailure, StorageFailure
from app.db.mixins import Base
import app.db.models  # noqa: F401
from app.services.blob_store import new_key
from app.services.documents import IncomingFile
from app.services.inquiry import InquiryService


class MemoryBlobStore:
    """BlobStore double that keeps blobs in a dict and records deletes."""

    def __init__(self):
        self.blobs: Dict[str, bytes] = {}
        self.deleted: List[str] = []
        self.fail_put = False
        self.fail_delete = False

    def put(self, prefix: str, file: IncomingFile) -> str:
        if self.fail_put:
            raise StorageFailure("disk full")
        key = new_key(prefix, file)
        self.blobs[key] = file.content
        return key

    def delete(self, key: str) -> bool:
        if self.fail_delete:
            raise StorageFailure("permission denied")
        self.deleted.append(key)
        return self.blobs.pop(key, None) is not None

    def open(self, key: str) -> bytes:
        try:
            return self.blobs[key]
        except KeyError:
            raise StorageFailure(f"Blob {key} is missing from the store")


class RecordingNotifier:
    def __init__(self):
        self.sent: List[Dict[str, str]] = []
        self.fail = False

    def send(self, to_email: str, subject: str, html_content: str) -> None:
        if self.fail:
            raise NotificationFailure("Brevo error 500")
        self.sent.append({"to": to_email, "subject": subject, "html": html_content})


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def db(engine) -> Generator[Session, None, None]:
    SessionTest = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
    session = SessionTest()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def blobs() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def service(db, blobs, notifier) -> InquiryService:
    return InquiryService(db, blobs, notifier, delete_blob_on_soft_delete=False)


@pytest.fixture
def fields() -> Dict[str, Any]:
    """A submission that passes every rule."""
    return {
        "price": "4500",
        "room_number": "A-101",
        "full_name": "Alice Santos",
        "contact_number": "09171234567",
        "email": "alice@example.com",
        "agreement": "1",
    }


@pytest.fixture
def edit_fields() -> Dict[str, Any]:
    return {
        "price": "4750.50",
        "room_number": "A-102",
        "full_name": "Alice Santos",
        "contact_number": "09171234567",
        "email": "alice@example.com",
        "agreement": "1",
    }


@pytest.fixture
def png_bytes() -> bytes:
    out = BytesIO()
    Image.new("RGB", (8, 8), (200, 30, 30)).save(out, format="PNG")
    return out.getvalue()


@pytest.fixture
def png_file(png_bytes) -> IncomingFile:
    return IncomingFile(filename="id-front.png", content=png_bytes, content_type="image/png")


@pytest.fixture
def pdf_file() -> IncomingFile:
    return IncomingFile(
        filename="passport.pdf",
        content=b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\n%%EOF\n",
        content_type="application/pdf",
    )
