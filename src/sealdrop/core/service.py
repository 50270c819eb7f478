"""
SealService: seal files into the blob store and open them again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..security.codec import decrypt_material, encrypt
from ..security.framing import deserialize_blob, serialize_blob
from ..security.kdf import KdfParams
from .exceptions import InvalidInputError
from .storage import BlobStore

logger = logging.getLogger(__name__)

DEFAULT_MEDIA_TYPE = "application/octet-stream"
DEFAULT_FILENAME = "file"


@dataclass(frozen=True)
class SealReceipt:
    blob_id: str
    original_name: str
    size: int


@dataclass(frozen=True)
class OpenedFile:
    data: bytes
    filename: str
    media_type: str


class SealService:
    """High-level seal/open operations over the codec, framer and store."""

    def __init__(self, store: BlobStore, kdf_params: Optional[KdfParams] = None):
        self.store = store
        self.kdf_params = kdf_params

    def seal(
        self,
        data: bytes,
        filename: str,
        media_type: Optional[str],
        passphrase: bytes | str,
    ) -> SealReceipt:
        """
        Encrypt ``data`` and store it as a new blob.

        Empty files are rejected here: the blob layout cannot tell an empty
        ciphertext apart from a blob cut short after its metadata.
        """
        if not passphrase:
            raise InvalidInputError("passphrase must not be empty")
        if not data:
            raise InvalidInputError("cannot seal an empty file")

        payload = encrypt(data, passphrase, self.kdf_params)
        blob = serialize_blob(
            payload.material,
            filename or "",
            media_type or DEFAULT_MEDIA_TYPE,
            payload.ciphertext,
        )
        blob_id = self.store.put(blob)
        logger.info("sealed %s (%d bytes, blob %d bytes)", blob_id, len(data), len(blob))
        return SealReceipt(blob_id=blob_id, original_name=filename, size=len(data))

    def open(self, blob_id: str, passphrase: bytes | str) -> OpenedFile:
        """
        Load, parse and decrypt the blob stored under ``blob_id``.

        Propagates ``BlobNotFoundError``/``InvalidBlobIdError`` from the store,
        ``MalformedBlobError`` subclasses from parsing and
        ``AuthenticationError`` from decryption.
        """
        if not passphrase:
            raise InvalidInputError("passphrase must not be empty")

        blob = self.store.get(blob_id)
        parsed = deserialize_blob(blob)
        data = decrypt_material(parsed.material, parsed.ciphertext, passphrase, self.kdf_params)
        logger.info("opened %s (%d bytes)", blob_id, len(data))
        return OpenedFile(
            data=data,
            filename=parsed.filename or DEFAULT_FILENAME,
            media_type=parsed.media_type or DEFAULT_MEDIA_TYPE,
        )
