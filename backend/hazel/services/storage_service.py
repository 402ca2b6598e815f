# Overview: Service-layer operations for photo storage; local filesystem buckets with signed download URLs.

"""
Storage Service

Objects live under STORAGE_ROOT/<bucket>/<key>. Public URLs are
STORAGE_PUBLIC_URL/<bucket>/<key>; signed URLs carry an itsdangerous token
that expires after `expires_in` seconds and are resolved by the media routes.
"""

from __future__ import annotations

import logging
import os
import secrets
import time
from dataclasses import dataclass

from flask import current_app
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from ..validation import ValidationError

logger = logging.getLogger(__name__)

SALE_PHOTOS_BUCKET = "sale-photos"
PHOTO_CARDS_BUCKET = "photo-cards"
BUCKETS = (SALE_PHOTOS_BUCKET, PHOTO_CARDS_BUCKET)

ALLOWED_IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "webp", "heic", "heif")
ALLOWED_IMAGE_MIME_TYPES = ("image/jpeg", "image/png", "image/webp", "image/heic", "image/heif")
SIGNED_URL_SALT = "hazel-storage-download"
DEFAULT_SIGNED_URL_TTL = 60


class StorageError(Exception):
    """Raised when an object cannot be written, read, or removed."""
    pass


@dataclass
class UploadFile:
    """An uploaded file detached from the request (werkzeug FileStorage is read into this)."""
    filename: str
    content_type: str | None
    data: bytes

    @classmethod
    def from_storage(cls, file_storage) -> "UploadFile":
        return cls(
            filename=file_storage.filename or "",
            content_type=file_storage.mimetype or None,
            data=file_storage.read(),
        )

    @property
    def extension(self) -> str:
        if "." not in (self.filename or ""):
            return ""
        return self.filename.rsplit(".", 1)[1].lower()


def validate_image(upload: UploadFile) -> None:
    ext = upload.extension
    if ext not in ALLOWED_IMAGE_EXTENSIONS:
        raise ValidationError(f"File type not allowed: .{ext or '(none)'}")
    if upload.content_type and upload.content_type not in ALLOWED_IMAGE_MIME_TYPES:
        raise ValidationError(f"MIME type not allowed: {upload.content_type}")
    max_bytes = current_app.config.get("MAX_UPLOAD_BYTES")
    if max_bytes and len(upload.data) > max_bytes:
        raise ValidationError(f"{upload.filename} exceeds the {max_bytes // (1024 * 1024)}MB upload limit")
    if not upload.data:
        raise ValidationError(f"{upload.filename} is empty")


def _storage_root() -> str:
    return current_app.config["STORAGE_ROOT"]


def _check_bucket(bucket: str) -> None:
    if bucket not in BUCKETS:
        raise StorageError(f"Unknown bucket: {bucket}")


def _object_path(bucket: str, key: str) -> str:
    _check_bucket(bucket)
    if not key or key.startswith("/") or ".." in key.split("/"):
        raise StorageError("Invalid object key")
    return os.path.join(_storage_root(), bucket, *key.split("/"))


def build_key(owner_id: int | str, extension: str) -> str:
    """`<owner_id>/<epoch millis>-<random>.<ext>`"""
    millis = int(time.time() * 1000)
    return f"{owner_id}/{millis}-{secrets.token_hex(4)}.{extension}"


def public_url(bucket: str, key: str) -> str:
    base = current_app.config.get("STORAGE_PUBLIC_URL", "/media").rstrip("/")
    return f"{base}/{bucket}/{key}"


def key_from_url(bucket: str, url: str) -> str | None:
    """Object key for a public URL of this bucket, or None if the URL points elsewhere."""
    marker = f"/{bucket}/"
    if not url or marker not in url:
        return None
    return url.split(marker, 1)[1] or None


def upload(bucket: str, key: str, data: bytes) -> str:
    path = _object_path(bucket, key)
    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as fh:
            fh.write(data)
    except OSError as exc:
        raise StorageError(f"Upload failed for {bucket}/{key}") from exc
    return public_url(bucket, key)


def upload_image(bucket: str, owner_id: int, upload_file: UploadFile) -> str:
    validate_image(upload_file)
    return upload(bucket, build_key(owner_id, upload_file.extension), upload_file.data)


def open_path(bucket: str, key: str) -> str:
    path = _object_path(bucket, key)
    if not os.path.isfile(path):
        raise StorageError("Object not found")
    return path


def remove(bucket: str, keys: list[str]) -> int:
    """Delete objects; missing objects are skipped. Returns how many files were removed."""
    removed = 0
    for key in keys:
        try:
            os.remove(_object_path(bucket, key))
            removed += 1
        except FileNotFoundError:
            continue
        except OSError:
            logger.warning("Could not remove %s/%s", bucket, key, exc_info=True)
    return removed


def remove_urls(bucket: str, urls: list[str]) -> int:
    keys = [key for key in (key_from_url(bucket, url) for url in urls) if key]
    return remove(bucket, keys)


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=SIGNED_URL_SALT)


def signed_url(bucket: str, key: str, expires_in: int = DEFAULT_SIGNED_URL_TTL, download_name: str | None = None) -> str:
    open_path(bucket, key)
    token = _serializer().dumps({"b": bucket, "k": key, "n": download_name, "e": expires_in})
    base = current_app.config.get("STORAGE_PUBLIC_URL", "/media").rstrip("/")
    return f"{base}/signed/{token}"


def resolve_signed(token: str) -> tuple[str, str, str | None]:
    """Token -> (bucket, key, download_name). Raises StorageError when invalid or expired."""
    serializer = _serializer()
    try:
        # Signature first, then the per-token lifetime
        data = serializer.loads(token)
        serializer.loads(token, max_age=int(data.get("e") or DEFAULT_SIGNED_URL_TTL))
    except SignatureExpired as exc:
        raise StorageError("Download link expired") from exc
    except BadSignature as exc:
        raise StorageError("Invalid download link") from exc
    return data["b"], data["k"], data.get("n")
