# app/services/documents.py
"""Uploaded identity documents: reading them off the request and checking their content."""
from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from pathlib import PurePath
from typing import List, Optional

from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError

from app.core.config import settings

ALLOWED_EXTENSIONS = {"jpg", "jpeg", "png", "pdf"}
IMAGE_FORMATS = {"jpg": "JPEG", "jpeg": "JPEG", "png": "PNG"}
PDF_MAGIC = b"%PDF-"


@dataclass(frozen=True)
class IncomingFile:
    filename: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def extension(self) -> str:
        return PurePath(self.filename or "").suffix.lstrip(".").lower()

    @property
    def size(self) -> int:
        return len(self.content)


def read_upload(upload: Optional[UploadFile], limit: Optional[int] = None) -> Optional[IncomingFile]:
    """
    Read an optional form upload into memory.
    Reads at most limit + 1 bytes so an oversized file is detected without
    loading all of it; the size check itself happens in check_document.
    Browsers send an empty part with no filename when the field is left blank.
    """
    if upload is None or not upload.filename:
        return None
    limit = settings.MAX_UPLOAD_BYTES if limit is None else limit
    data = upload.file.read(limit + 1)
    return IncomingFile(filename=upload.filename, content=data, content_type=upload.content_type)


def _image_format(raw: bytes) -> Optional[str]:
    try:
        im = Image.open(BytesIO(raw))
        im.verify()
    except (UnidentifiedImageError, OSError, SyntaxError):
        return None
    return im.format


def check_document(doc: IncomingFile, max_bytes: Optional[int] = None) -> List[str]:
    """Return the reasons this document is unacceptable (empty list when it is fine)."""
    max_bytes = settings.MAX_UPLOAD_BYTES if max_bytes is None else max_bytes
    ext = doc.extension

    if ext not in ALLOWED_EXTENSIONS:
        return ["The valid id must be a file of type: jpg, jpeg, png, pdf."]
    if doc.size == 0:
        return ["The valid id upload is empty."]
    if doc.size > max_bytes:
        return [f"The valid id may not be greater than {max_bytes // 1024} kilobytes."]

    if ext == "pdf":
        if not doc.content.startswith(PDF_MAGIC):
            return ["The valid id is not a readable PDF document."]
        return []

    found = _image_format(doc.content)
    if found is None:
        return ["The valid id is not a readable image."]
    if found != IMAGE_FORMATS[ext]:
        return [f"The valid id content ({found}) does not match its .{ext} extension."]
    return []
