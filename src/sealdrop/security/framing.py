"""Binary blob framing for sealed files.

Layout (no magic, no version byte; integers little-endian):

- 16 bytes: salt
- 12 bytes: nonce
- 16 bytes: GCM auth tag
- 4 bytes: name_len (unsigned)
- name_len bytes: filename, UTF-8
- 4 bytes: mime_len (unsigned)
- mime_len bytes: media type, UTF-8
- rest: ciphertext

Parsing goes through :class:`BlobCursor`, which checks the remaining length
before every read so a hostile length field can only ever produce a
``TruncatedBlobError``.
"""
import struct
from dataclasses import dataclass

from ..core.exceptions import (
    EmptyCiphertextError,
    InvalidInputError,
    InvalidMetadataError,
    TruncatedBlobError,
)
from .codec import NONCE_SIZE, TAG_SIZE, EncryptionMaterial
from .kdf import SALT_SIZE

LENGTH_FORMAT = "<I"
LENGTH_SIZE = struct.calcsize(LENGTH_FORMAT)
MAX_FIELD_LEN = 2**32 - 1
FIXED_HEADER_SIZE = SALT_SIZE + NONCE_SIZE + TAG_SIZE


@dataclass(frozen=True)
class ParsedBlob:
    material: EncryptionMaterial
    filename: str
    media_type: str
    ciphertext: bytes


class BlobCursor:
    """Read-only view over a blob with an advancing offset."""

    def __init__(self, buffer: bytes):
        self._buffer = memoryview(bytes(buffer))
        self.offset = 0

    @property
    def remaining(self) -> int:
        return len(self._buffer) - self.offset

    def take_exact(self, n: int, field: str) -> bytes:
        """Return the next ``n`` bytes or raise without touching the buffer."""
        if n > self.remaining:
            raise TruncatedBlobError(field, n, self.remaining)
        chunk = self._buffer[self.offset:self.offset + n].tobytes()
        self.offset += n
        return chunk

    def take_u32(self, field: str) -> int:
        (value,) = struct.unpack(LENGTH_FORMAT, self.take_exact(LENGTH_SIZE, field))
        return value

    def take_rest(self) -> bytes:
        chunk = self._buffer[self.offset:].tobytes()
        self.offset = len(self._buffer)
        return chunk


def _encode_field(name: str, value: str) -> bytes:
    raw = value.encode("utf-8")
    if len(raw) > MAX_FIELD_LEN:
        raise InvalidInputError(f"{name} is too long to frame ({len(raw)} bytes)")
    return struct.pack(LENGTH_FORMAT, len(raw)) + raw


def _decode_field(name: str, raw: bytes) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        raise InvalidMetadataError(f"{name} is not valid UTF-8") from None


def serialize_blob(
    material: EncryptionMaterial,
    filename: str,
    media_type: str,
    ciphertext: bytes,
) -> bytes:
    """Frame material, metadata and ciphertext into one blob."""
    material.validate()

    out = bytearray()
    out += material.salt
    out += material.nonce
    out += material.auth_tag
    out += _encode_field("filename", filename)
    out += _encode_field("media_type", media_type)
    out += ciphertext
    return bytes(out)


def deserialize_blob(blob: bytes) -> ParsedBlob:
    """
    Split a blob back into its fields.

    Raises ``TruncatedBlobError`` when any field runs past the end,
    ``InvalidMetadataError`` for non UTF-8 metadata and
    ``EmptyCiphertextError`` when nothing follows the metadata.
    """
    cursor = BlobCursor(blob)

    salt = cursor.take_exact(SALT_SIZE, "salt")
    nonce = cursor.take_exact(NONCE_SIZE, "nonce")
    auth_tag = cursor.take_exact(TAG_SIZE, "auth_tag")

    name_len = cursor.take_u32("name_len")
    filename = _decode_field("filename", cursor.take_exact(name_len, "name"))

    mime_len = cursor.take_u32("mime_len")
    media_type = _decode_field("media_type", cursor.take_exact(mime_len, "mime"))

    if cursor.remaining == 0:
        raise EmptyCiphertextError()
    ciphertext = cursor.take_rest()

    return ParsedBlob(
        material=EncryptionMaterial(salt=salt, nonce=nonce, auth_tag=auth_tag),
        filename=filename,
        media_type=media_type,
        ciphertext=ciphertext,
    )
