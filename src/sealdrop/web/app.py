"""
HTTP API for SealDrop.

Endpoints:
    POST /api/encrypt
    -> multipart form with ``file`` and ``secret``
    -> {"id", "originalName", "size"}

    POST /api/decrypt
    -> JSON {"id", "secret"}
    -> the original bytes with Content-Type and Content-Disposition restored

Every failure that depends on the blob contents or the secret yields the same
400 body so callers cannot tell a wrong secret from a damaged blob.

Usage:
    sealdrop serve --port 4000 --storage-dir ./storage
"""

from __future__ import annotations

import logging
import re
from typing import Optional
from urllib.parse import quote

from flask import Flask, Response, current_app, jsonify, request
from werkzeug.exceptions import RequestEntityTooLarge

from ..config import Settings
from ..core.exceptions import (
    AuthenticationError,
    InvalidInputError,
    MalformedBlobError,
    StorageError,
)
from ..core.service import DEFAULT_MEDIA_TYPE, SealService
from ..core.storage import BlobStore
from ..security.kdf import kdf_params_to_dict

logger = logging.getLogger(__name__)

DECRYPT_FAILED = "decryption failed (wrong secret or corrupt data)"

_TOKEN = r"[A-Za-z0-9!#$&^_.+-]+"
_MEDIA_TYPE_RE = re.compile(
    rf'{_TOKEN}/{_TOKEN}(?: *; *{_TOKEN}=(?:{_TOKEN}|"[\x20\x21\x23-\x5b\x5d-\x7e]*"))*'
)


def content_disposition(filename: str) -> str:
    """Build an inline Content-Disposition header that survives any filename."""
    fallback = "".join(
        c if 32 <= ord(c) < 127 and c not in '"\\' else "_" for c in filename
    ) or "file"
    header = f'inline; filename="{fallback}"'
    if filename and fallback != filename:
        header += f"; filename*=UTF-8''{quote(filename, safe='')}"
    return header


def safe_media_type(media_type: str) -> str:
    """Return ``media_type`` if it is a plain type/subtype, else the default."""
    if _MEDIA_TYPE_RE.fullmatch(media_type or ""):
        return media_type
    return DEFAULT_MEDIA_TYPE


def _service() -> SealService:
    return current_app.extensions["sealdrop"]


def _error(message: str, status: int):
    return jsonify({"error": message}), status


def encrypt_route():
    upload = request.files.get("file")
    secret = request.form.get("secret") or ""
    if upload is None or not secret:
        return _error("file and secret required", 400)

    data = upload.read()
    if not data:
        return _error("empty files are not supported", 400)

    try:
        receipt = _service().seal(
            data,
            upload.filename or "",
            upload.mimetype or DEFAULT_MEDIA_TYPE,
            secret,
        )
    except InvalidInputError as e:
        return _error(str(e), 400)
    except Exception:
        logger.exception("encrypt error")
        return _error("encryption failed", 500)

    return jsonify(
        {"id": receipt.blob_id, "originalName": receipt.original_name, "size": receipt.size}
    )


def decrypt_route():
    body = request.get_json(silent=True) or {}
    blob_id = body.get("id") if isinstance(body, dict) else None
    secret = body.get("secret") if isinstance(body, dict) else None
    logger.info("decrypt request id=%s has_secret=%s", blob_id, bool(secret))
    if not isinstance(blob_id, str) or not blob_id or not isinstance(secret, str) or not secret:
        return _error("id and secret required", 400)

    try:
        opened = _service().open(blob_id, secret)
        # name and media type are not covered by the tag
        response = Response(opened.data, content_type=safe_media_type(opened.media_type))
        response.headers["Content-Disposition"] = content_disposition(opened.filename)
    except StorageError:
        # unknown and malformed ids look the same from outside
        return _error("not found", 404)
    except (MalformedBlobError, AuthenticationError) as e:
        logger.warning("decrypt failed for %s: %s", blob_id, type(e).__name__)
        return _error(DECRYPT_FAILED, 400)
    except Exception:
        logger.exception("decrypt error for %s", blob_id)
        return _error(DECRYPT_FAILED, 500)

    return response


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[SealService] = None,
) -> Flask:
    """Build the Flask app; ``service`` defaults to one over ``settings.storage_dir``."""
    settings = settings or Settings.from_env()
    if service is None:
        service = SealService(BlobStore(settings.storage_dir), settings.kdf_params())

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = settings.max_upload_bytes
    app.extensions["sealdrop"] = service

    app.add_url_rule("/api/encrypt", "encrypt", encrypt_route, methods=["POST"])
    app.add_url_rule("/api/decrypt", "decrypt", decrypt_route, methods=["POST"])

    @app.errorhandler(RequestEntityTooLarge)
    def too_large(_e):
        return _error("file too large", 413)

    @app.after_request
    def add_cors_headers(response):
        response.headers["Access-Control-Allow-Origin"] = settings.cors_origin
        response.headers["Access-Control-Allow-Methods"] = "POST, OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        response.headers["Access-Control-Expose-Headers"] = "Content-Disposition"
        return response

    return app


def run_server(settings: Settings) -> None:
    """Serve the API with one worker thread per request."""
    app = create_app(settings)
    logger.info(
        "SealDrop listening on %s:%d (storage=%s, kdf=%s)",
        settings.host,
        settings.port,
        settings.storage_dir,
        kdf_params_to_dict(settings.kdf_params()),
    )
    app.run(host=settings.host, port=settings.port, threaded=True)
