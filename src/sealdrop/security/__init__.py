"""Security helpers: KDF, AEAD codec and blob framing for SealDrop.

This package provides:
- scrypt (default) or Argon2id passphrase key derivation
- AES-256-GCM encryption of whole buffers with per-call salt and nonce
- the binary blob layout carrying salt, nonce, tag, filename and media type

Everything here is pure: no I/O, no shared state.
"""

from .kdf import KdfParams, generate_salt, derive_key, kdf_params_to_dict
from .codec import (
    EncryptionMaterial,
    EncryptedPayload,
    encrypt,
    decrypt,
    decrypt_material,
)
from .framing import ParsedBlob, BlobCursor, serialize_blob, deserialize_blob

__all__ = [
    "KdfParams",
    "generate_salt",
    "derive_key",
    "kdf_params_to_dict",
    "EncryptionMaterial",
    "EncryptedPayload",
    "encrypt",
    "decrypt",
    "decrypt_material",
    "ParsedBlob",
    "BlobCursor",
    "serialize_blob",
    "deserialize_blob",
]
