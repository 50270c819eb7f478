"""Passphrase key derivation for SealDrop.

scrypt is the default so blobs stay readable by any implementation using the
common ``N=2**14, r=8, p=1`` parameters. Argon2id is available as an
alternative; the blob layout does not record which one was used, so a
deployment must keep the same choice for the lifetime of its store.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, Optional

from argon2.low_level import Type, hash_secret_raw
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from ..core.exceptions import InvalidInputError

SALT_SIZE = 16
KEY_SIZE = 32

KDF_SCRYPT = "scrypt"
KDF_ARGON2ID = "argon2id"
SUPPORTED_KDFS = (KDF_SCRYPT, KDF_ARGON2ID)


@dataclass(frozen=True)
class KdfParams:
    """Cost parameters for :func:`derive_key`."""

    algorithm: str = KDF_SCRYPT
    # scrypt
    n: int = 2**14
    r: int = 8
    p: int = 1
    # argon2id
    time_cost: int = 3
    memory_cost: int = 65536
    parallelism: int = 1
    key_len: int = KEY_SIZE

    def __post_init__(self):
        if self.algorithm not in SUPPORTED_KDFS:
            raise ValueError(f"unsupported KDF: {self.algorithm!r}")


DEFAULT_PARAMS = KdfParams()


def generate_salt(length: int = SALT_SIZE) -> bytes:
    """Return a cryptographically secure random salt."""
    return os.urandom(length)


def derive_key(
    passphrase: bytes | str,
    salt: bytes,
    params: Optional[KdfParams] = None,
) -> bytes:
    """
    Derive a symmetric key from a passphrase and a 16-byte salt.

    Deterministic for identical inputs. Raises ``InvalidInputError`` for an
    empty passphrase or a salt of the wrong size.
    """
    params = params or DEFAULT_PARAMS
    if isinstance(passphrase, str):
        passphrase = passphrase.encode("utf-8")
    if not passphrase:
        raise InvalidInputError("passphrase must not be empty")
    if len(salt) != SALT_SIZE:
        raise InvalidInputError(f"salt must be {SALT_SIZE} bytes, got {len(salt)}")

    if params.algorithm == KDF_ARGON2ID:
        return hash_secret_raw(
            secret=passphrase,
            salt=salt,
            time_cost=params.time_cost,
            memory_cost=params.memory_cost,
            parallelism=params.parallelism,
            hash_len=params.key_len,
            type=Type.ID,
        )

    kdf = Scrypt(salt=salt, length=params.key_len, n=params.n, r=params.r, p=params.p)
    return kdf.derive(passphrase)


def kdf_params_to_dict(params: KdfParams) -> Dict:
    if params.algorithm == KDF_ARGON2ID:
        return {
            "algo": KDF_ARGON2ID,
            "time": params.time_cost,
            "memory": params.memory_cost,
            "parallelism": params.parallelism,
            "key_len": params.key_len,
        }
    return {
        "algo": KDF_SCRYPT,
        "n": params.n,
        "r": params.r,
        "p": params.p,
        "key_len": params.key_len,
    }
