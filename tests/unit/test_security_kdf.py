"""Unit tests for the Key Derivation Function (KDF) module."""

import hashlib

import pytest
from sealdrop.core.exceptions import InvalidInputError
from sealdrop.security.kdf import (
    KdfParams,
    derive_key,
    generate_salt,
    kdf_params_to_dict,
)


def test_generate_salt_defaults():
    """Ensure salt generation returns bytes of the default length (16)."""
    salt = generate_salt()
    assert isinstance(salt, bytes)
    assert len(salt) == 16


def test_generate_salt_is_random():
    assert generate_salt() != generate_salt()


def test_derive_key_default_is_32_bytes():
    key = derive_key(b"correct-horse", generate_salt())
    assert isinstance(key, bytes)
    assert len(key) == 32


def test_derive_key_is_deterministic(fast_kdf):
    """Same passphrase and salt always yield the same key."""
    salt = generate_salt()
    assert derive_key(b"pass", salt, fast_kdf) == derive_key(b"pass", salt, fast_kdf)


def test_derive_key_different_salt_differs(fast_kdf):
    salt_a = b"\x00" * 16
    salt_b = b"\x01" * 16
    assert derive_key(b"pass", salt_a, fast_kdf) != derive_key(b"pass", salt_b, fast_kdf)


def test_derive_key_str_and_bytes_match(fast_kdf):
    """Ensure passing the same passphrase as string or bytes yields the same key."""
    salt = generate_salt()
    assert derive_key("pässword", salt, fast_kdf) == derive_key(
        "pässword".encode("utf-8"), salt, fast_kdf
    )


def test_derive_key_matches_plain_scrypt():
    """
    Default parameters are plain scrypt N=2**14, r=8, p=1, dklen=32, the same
    values other scrypt implementations use by default.
    """
    salt = bytes(range(16))
    expected = hashlib.scrypt(b"correct-horse", salt=salt, n=2**14, r=8, p=1, dklen=32)
    assert derive_key("correct-horse", salt) == expected


def test_derive_key_rejects_empty_passphrase():
    with pytest.raises(InvalidInputError, match="passphrase must not be empty"):
        derive_key("", generate_salt())


@pytest.mark.parametrize("size", [0, 15, 17, 32])
def test_derive_key_rejects_wrong_salt_size(size):
    with pytest.raises(InvalidInputError, match="salt must be 16 bytes"):
        derive_key(b"pass", b"\x00" * size)


def test_derive_key_argon2id():
    """Use very low costs for speed in unit tests."""
    params = KdfParams(algorithm="argon2id", time_cost=1, memory_cost=8, parallelism=1)
    salt = generate_salt()
    key = derive_key(b"pass", salt, params)
    assert len(key) == 32
    assert key == derive_key(b"pass", salt, params)
    # a different KDF gives an unrelated key for the same inputs
    assert key != derive_key(b"pass", salt, KdfParams(n=2**10))


def test_kdf_params_rejects_unknown_algorithm():
    with pytest.raises(ValueError, match="unsupported KDF"):
        KdfParams(algorithm="pbkdf2")


def test_kdf_params_to_dict():
    assert kdf_params_to_dict(KdfParams()) == {
        "algo": "scrypt",
        "n": 16384,
        "r": 8,
        "p": 1,
        "key_len": 32,
    }
    assert kdf_params_to_dict(KdfParams(algorithm="argon2id", time_cost=2)) == {
        "algo": "argon2id",
        "time": 2,
        "memory": 65536,
        "parallelism": 1,
        "key_len": 32,
    }
