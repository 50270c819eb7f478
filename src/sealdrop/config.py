"""Runtime settings for SealDrop.

Settings come from environment variables so the server can be configured
without a config file; CLI flags override them (see :mod:`sealdrop.cli`).

- ``SEALDROP_HOST``: bind address (default ``0.0.0.0``)
- ``SEALDROP_PORT``: listen port (default ``4000``)
- ``SEALDROP_STORAGE_DIR``: blob directory (default ``./storage``)
- ``SEALDROP_CORS_ORIGIN``: value of ``Access-Control-Allow-Origin`` (default ``*``)
- ``SEALDROP_MAX_UPLOAD_MB``: upload limit in MiB (default ``50``)
- ``SEALDROP_KDF``: ``scrypt`` or ``argon2id`` (default ``scrypt``)
- ``SEALDROP_LOG_LEVEL``: logging level name (default ``INFO``)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional

from .security.kdf import SUPPORTED_KDFS, KdfParams

ENV_PREFIX = "SEALDROP_"


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 4000
    storage_dir: Path = Path("storage")
    cors_origin: str = "*"
    max_upload_mb: int = 50
    kdf: str = "scrypt"
    log_level: str = "INFO"

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    def kdf_params(self) -> KdfParams:
        return KdfParams(algorithm=self.kdf)

    def override(self, **changes) -> "Settings":
        """Return a copy with every non-None value in ``changes`` applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ

        def get(name: str) -> Optional[str]:
            value = env.get(ENV_PREFIX + name)
            return value.strip() if value is not None and value.strip() else None

        defaults = cls()
        port = _parse_int("PORT", get("PORT"), defaults.port)
        if not 0 < port < 65536:
            raise ValueError(f"{ENV_PREFIX}PORT out of range: {port}")
        max_upload_mb = _parse_int("MAX_UPLOAD_MB", get("MAX_UPLOAD_MB"), defaults.max_upload_mb)
        if max_upload_mb <= 0:
            raise ValueError(f"{ENV_PREFIX}MAX_UPLOAD_MB must be positive")
        kdf = (get("KDF") or defaults.kdf).lower()
        if kdf not in SUPPORTED_KDFS:
            raise ValueError(f"{ENV_PREFIX}KDF must be one of {', '.join(SUPPORTED_KDFS)}")

        storage_dir = get("STORAGE_DIR")
        return cls(
            host=get("HOST") or defaults.host,
            port=port,
            storage_dir=Path(storage_dir).expanduser() if storage_dir else defaults.storage_dir,
            cors_origin=get("CORS_ORIGIN") or defaults.cors_origin,
            max_upload_mb=max_upload_mb,
            kdf=kdf,
            log_level=(get("LOG_LEVEL") or defaults.log_level).upper(),
        )


def _parse_int(name: str, raw: Optional[str], default: int) -> int:
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from None
