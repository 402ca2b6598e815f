# Overview: Flask API routes for the photo gallery; parses input and returns JSON responses.

"""
Photo Card Routes

Cards are paged newest-updated first, 8 per page:
    GET /api/photo-cards?tag=<name>&cursor=<next_cursor from previous page>

Downloads return short-lived signed URLs (60 seconds) rather than file bytes.
"""

from flask import Blueprint, request, jsonify

from ..decorators import require_auth
from ..error_reporting import internal_error
from ..services import photo_card_service, photo_tag_service
from ..services.storage_service import UploadFile
from ..validation import ConflictError, NotFoundError, ValidationError


photo_cards_bp = Blueprint("photo_cards", __name__, url_prefix="/api/photo-cards")
photo_tags_bp = Blueprint("photo_tags", __name__, url_prefix="/api/photo-tags")


@photo_cards_bp.get("")
@require_auth
def list_photo_cards_route():
    try:
        return jsonify(photo_card_service.list_photo_cards(
            tag=request.args.get("tag") or None,
            cursor=request.args.get("cursor") or None,
            customer_id=request.args.get("customer_id", type=int),
        ))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        return internal_error("photo_cards.list", e)


@photo_cards_bp.get("/<int:card_id>")
@require_auth
def get_photo_card_route(card_id: int):
    try:
        return jsonify(photo_card_service.get_photo_card(card_id))
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        return internal_error("photo_cards.get_photo_card", e)


@photo_cards_bp.post("")
@require_auth
def create_photo_card_route():
    """Body: {"title", "description"?, "tags"?: [str], "photos"?: [{url, original_name}], "sale_id"?}"""
    data = request.get_json(silent=True) or {}
    try:
        return jsonify(photo_card_service.create_photo_card(data)), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        return internal_error("photo_cards.create", e)


@photo_cards_bp.put("/<int:card_id>")
@require_auth
def update_photo_card_route(card_id: int):
    data = request.get_json(silent=True) or {}
    try:
        return jsonify(photo_card_service.update_photo_card(card_id, data))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        return internal_error("photo_cards.update_photo_card", e)


@photo_cards_bp.delete("/<int:card_id>")
@require_auth
def delete_photo_card_route(card_id: int):
    try:
        photos = photo_card_service.delete_photo_card(card_id)
        return jsonify({"success": True, "removed_photos": len(photos)})
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        return internal_error("photo_cards.delete", e)


@photo_cards_bp.post("/<int:card_id>/photos")
@require_auth
def upload_photos_route(card_id: int):
    """
    Multipart upload. Parts named `files` are the images; optional parts named
    `original_names` carry the display filename for each file, in order.
    """
    files = [UploadFile.from_storage(f) for f in request.files.getlist("files") if f.filename]
    original_names = request.form.getlist("original_names")
    try:
        uploaded = photo_card_service.upload_photos(card_id, files, original_names)
        return jsonify({"success": True, "photos": uploaded}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        return internal_error("photo_cards.upload_photos", e)


@photo_cards_bp.delete("/<int:card_id>/photos")
@require_auth
def delete_photo_route(card_id: int):
    data = request.get_json(silent=True) or {}
    if not data.get("url"):
        return jsonify({"error": "url is required"}), 400
    try:
        return jsonify(photo_card_service.delete_photo(card_id, data["url"]))
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        return internal_error("photo_cards.delete_photo", e)


@photo_cards_bp.put("/<int:card_id>/photos/order")
@require_auth
def reorder_photos_route(card_id: int):
    """Body: {"photos": [url, ...]} naming every current photo in the new order."""
    data = request.get_json(silent=True) or {}
    try:
        return jsonify(photo_card_service.reorder_photos(card_id, data.get("photos")))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        return internal_error("photo_cards.reorder_photos", e)


@photo_cards_bp.get("/<int:card_id>/download")
@require_auth
def download_photo_route(card_id: int):
    """?url=<photo url> -> {"url": signed url, "filename": original name}"""
    url = request.args.get("url")
    if not url:
        return jsonify({"error": "url is required"}), 400
    try:
        return jsonify(photo_card_service.download_photo(card_id, url))
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        return internal_error("photo_cards.download_photo", e)


@photo_cards_bp.get("/<int:card_id>/download-all")
@require_auth
def download_all_route(card_id: int):
    try:
        return jsonify(photo_card_service.download_all_photos(card_id))
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        return internal_error("photo_cards.download_all", e)


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------

@photo_tags_bp.get("")
@require_auth
def list_photo_tags_route():
    return jsonify(photo_tag_service.list_photo_tags())


@photo_tags_bp.post("")
@require_auth
def create_photo_tag_route():
    data = request.get_json(silent=True) or {}
    try:
        return jsonify(photo_tag_service.create_photo_tag(data.get("name"), data.get("color"))), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception as e:
        return internal_error("photo_cards.create_photo_tag", e)


@photo_tags_bp.put("/<int:tag_id>")
@require_auth
def update_photo_tag_route(tag_id: int):
    """Renaming a tag renames it on every card that carries it."""
    data = request.get_json(silent=True) or {}
    try:
        return jsonify(photo_tag_service.update_photo_tag(tag_id, data.get("name"), data.get("color")))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception as e:
        return internal_error("photo_cards.update_photo_tag", e)


@photo_tags_bp.delete("/<int:tag_id>")
@require_auth
def delete_photo_tag_route(tag_id: int):
    try:
        cards_updated = photo_tag_service.delete_photo_tag(tag_id)
        return jsonify({"success": True, "cards_updated": cards_updated})
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        return internal_error("photo_cards.delete_photo_tag", e)
