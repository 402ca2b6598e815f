# Overview: Serves stored photo files (public URLs and signed download links).

from flask import Blueprint, abort, send_file

from ..services import storage_service
from ..services.storage_service import BUCKETS, StorageError


media_bp = Blueprint("media", __name__, url_prefix="/media")


@media_bp.get("/signed/<token>")
def signed_download(token: str):
    """Signed links are the download path: served as attachments under the original filename."""
    try:
        bucket, key, download_name = storage_service.resolve_signed(token)
        path = storage_service.open_path(bucket, key)
    except StorageError:
        abort(404)
    return send_file(path, as_attachment=True, download_name=download_name or key.rsplit("/", 1)[-1])


@media_bp.get("/<bucket>/<path:key>")
def public_object(bucket: str, key: str):
    if bucket not in BUCKETS:
        abort(404)
    try:
        path = storage_service.open_path(bucket, key)
    except StorageError:
        abort(404)
    return send_file(path)
