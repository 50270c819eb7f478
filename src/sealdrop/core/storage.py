"""
Filesystem blob store

Structure Map for reference:
==============================
 - <storage_root>/
      - {uuid4}.bin
      - .{uuid4}.bin.tmp (only while a put is in flight)
==============================
For reference:
> Blobs are opaque bytes; the store never looks inside them.
> Ids are generated here and validated on every lookup, so a caller-supplied
  id can never name a path outside the storage root.
> There is no delete: blobs live until someone removes them from disk.
"""

from __future__ import annotations

import os
import re
import uuid
from pathlib import Path
from typing import Optional

from .exceptions import BlobNotFoundError, InvalidBlobIdError, StorageError

BLOB_SUFFIX = ".bin"
_BLOB_ID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}\.bin$"
)


class BlobStore:
    """put/get store for sealed blobs, one file per blob."""

    def __init__(self, root_path: Optional[str | Path] = None):
        self.root = (
            Path(root_path).expanduser() if root_path else Path.cwd() / "storage"
        )
        self.root.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def new_id() -> str:
        return f"{uuid.uuid4()}{BLOB_SUFFIX}"

    @staticmethod
    def is_valid_id(blob_id: str) -> bool:
        return isinstance(blob_id, str) and bool(_BLOB_ID_RE.match(blob_id))

    def blob_path(self, blob_id: str) -> Path:
        if not self.is_valid_id(blob_id):
            raise InvalidBlobIdError(f"invalid blob id: {blob_id!r}")
        return self.root / blob_id

    def put(self, blob: bytes) -> str:
        """Persist ``blob`` under a fresh id and return the id."""
        blob_id = self.new_id()
        destination = self.blob_path(blob_id)
        tmp_path = self.root / f".{blob_id}.tmp"
        try:
            with open(tmp_path, "wb") as f:
                f.write(blob)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, destination)
        except OSError as e:
            try:
                tmp_path.unlink()
            except FileNotFoundError:
                pass
            raise StorageError(f"could not write blob {blob_id}: {e}") from e
        return blob_id

    def get(self, blob_id: str) -> bytes:
        """Return the bytes stored under ``blob_id``."""
        path = self.blob_path(blob_id)
        try:
            with open(path, "rb") as f:
                return f.read()
        except FileNotFoundError:
            raise BlobNotFoundError(f"blob {blob_id} not found") from None

    def has(self, blob_id: str) -> bool:
        if not self.is_valid_id(blob_id):
            return False
        return (self.root / blob_id).exists()
