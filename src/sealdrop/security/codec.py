"""AES-256-GCM codec keyed by a passphrase.

Each :func:`encrypt` call draws a fresh salt and nonce, stretches the
passphrase into a one-off key and seals the whole buffer with no associated
data. The key never leaves the call that derived it.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..core.exceptions import AuthenticationError, InvalidInputError
from .kdf import SALT_SIZE, KdfParams, derive_key, generate_salt

NONCE_SIZE = 12
TAG_SIZE = 16


@dataclass(frozen=True)
class EncryptionMaterial:
    """Public per-encryption values stored next to the ciphertext."""

    salt: bytes
    nonce: bytes
    auth_tag: bytes

    def validate(self) -> None:
        _check_size("salt", self.salt, SALT_SIZE)
        _check_size("nonce", self.nonce, NONCE_SIZE)
        _check_size("auth_tag", self.auth_tag, TAG_SIZE)


@dataclass(frozen=True)
class EncryptedPayload:
    material: EncryptionMaterial
    ciphertext: bytes


def _check_size(name: str, value: bytes, expected: int) -> None:
    if len(value) != expected:
        raise InvalidInputError(f"{name} must be {expected} bytes, got {len(value)}")


def _wipe(buf: bytearray) -> None:
    # best-effort; copies made inside the KDF or cipher are out of reach
    for i in range(len(buf)):
        buf[i] = 0


def encrypt(
    plaintext: bytes,
    passphrase: bytes | str,
    params: Optional[KdfParams] = None,
) -> EncryptedPayload:
    """
    Encrypt ``plaintext`` under a key derived from ``passphrase``.

    The ciphertext has the same length as the plaintext; the 16-byte GCM tag
    is returned separately in the material.
    """
    salt = generate_salt()
    nonce = os.urandom(NONCE_SIZE)
    key = bytearray(derive_key(passphrase, salt, params))
    try:
        sealed = AESGCM(key).encrypt(nonce, bytes(plaintext), None)
    finally:
        _wipe(key)

    ciphertext, auth_tag = sealed[:-TAG_SIZE], sealed[-TAG_SIZE:]
    return EncryptedPayload(
        material=EncryptionMaterial(salt=salt, nonce=nonce, auth_tag=auth_tag),
        ciphertext=ciphertext,
    )


def decrypt(
    ciphertext: bytes,
    nonce: bytes,
    auth_tag: bytes,
    salt: bytes,
    passphrase: bytes | str,
    params: Optional[KdfParams] = None,
) -> bytes:
    """
    Verify and decrypt ``ciphertext``.

    Field sizes are checked before any key derivation. A tag mismatch always
    raises the same ``AuthenticationError`` whether the passphrase is wrong or
    the data was altered.
    """
    _check_size("nonce", nonce, NONCE_SIZE)
    _check_size("auth_tag", auth_tag, TAG_SIZE)
    _check_size("salt", salt, SALT_SIZE)

    key = bytearray(derive_key(passphrase, salt, params))
    try:
        return AESGCM(key).decrypt(nonce, bytes(ciphertext) + bytes(auth_tag), None)
    except InvalidTag:
        raise AuthenticationError() from None
    finally:
        _wipe(key)


def decrypt_material(
    material: EncryptionMaterial,
    ciphertext: bytes,
    passphrase: bytes | str,
    params: Optional[KdfParams] = None,
) -> bytes:
    """Shortcut for :func:`decrypt` taking the material as one object."""
    return decrypt(
        ciphertext,
        material.nonce,
        material.auth_tag,
        material.salt,
        passphrase,
        params,
    )
