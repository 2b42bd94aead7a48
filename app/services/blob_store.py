# app/services/blob_store.py
from __future__ import annotations

import logging
import os
import uuid
from pathlib import Path
from typing import Protocol

from app.core.exceptions import StorageFailure
from app.services.documents import IncomingFile

logger = logging.getLogger(__name__)


class BlobStore(Protocol):
    def put(self, prefix: str, file: IncomingFile) -> str: ...

    def delete(self, key: str) -> bool: ...

    def open(self, key: str) -> bytes: ...


def new_key(prefix: str, file: IncomingFile) -> str:
    ext = file.extension or "bin"
    return f"{prefix.strip('/')}/{uuid.uuid4().hex}.{ext}"


class LocalBlobStore:
    """
    Stores blobs as files under a media root. Keys are relative POSIX paths
    such as "valid_ids/3f2a....pdf".
    """

    def __init__(self, root: str | os.PathLike):
        self.root = Path(root).resolve()

    def _path(self, key: str) -> Path:
        p = (self.root / key).resolve()
        if self.root not in p.parents:
            raise StorageFailure(f"Invalid blob key: {key!r}")
        return p

    def put(self, prefix: str, file: IncomingFile) -> str:
        key = new_key(prefix, file)
        final_path = self._path(key)
        tmp_path = final_path.with_name(final_path.name + ".tmp")
        try:
            final_path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "wb") as f:
                f.write(file.content)
            os.replace(tmp_path, final_path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise StorageFailure(f"Could not store {key}: {e}") from e
        logger.info("Stored blob %s (%d bytes)", key, file.size)
        return key

    def delete(self, key: str) -> bool:
        """Remove a blob. Returns False when it was already gone."""
        p = self._path(key)
        try:
            p.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageFailure(f"Could not delete {key}: {e}") from e
        logger.info("Deleted blob %s", key)
        return True

    def open(self, key: str) -> bytes:
        p = self._path(key)
        try:
            return p.read_bytes()
        except FileNotFoundError:
            raise StorageFailure(f"Blob {key} is missing from the store")
        except OSError as e:
            raise StorageFailure(f"Could not read {key}: {e}") from e
