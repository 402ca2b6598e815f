# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

"""
Sales Routes

All routes require authentication. Payload validation happens in the service
layer; these handlers only map domain errors to status codes:
- ValidationError -> 400
- NotFoundError   -> 404
- ConflictError   -> 409
"""

from flask import Blueprint, Response, request, jsonify

from ..decorators import require_auth
from ..error_reporting import internal_error
from ..services import deposit_service, export_service, photo_card_service, sales_service
from ..services.storage_service import UploadFile
from ..validation import ConflictError, NotFoundError, ValidationError


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.get("")
@require_auth
def list_sales_route():
    """
    List sales for a month, newest first.

    Query parameters:
    - month: YYYY-MM (default: current month in the shop's timezone)
    """
    try:
        return jsonify(sales_service.list_sales(request.args.get("month")))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        return internal_error("sales.list", e)


@sales_bp.get("/export")
@require_auth
def export_sales_route():
    """Monthly sales ledger as CSV (UTF-8 with BOM)."""
    month = request.args.get("month")
    try:
        body = export_service.sales_csv(month)
        filename = export_service.export_filename("sales", month)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        return internal_error("sales.export", e)

    return Response(
        body,
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@sales_bp.get("/<int:sale_id>")
@require_auth
def get_sale_route(sale_id: int):
    try:
        return jsonify(sales_service.get_sale(sale_id))
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        return internal_error("sales.get_sale", e)


@sales_bp.post("")
@require_auth
def create_sale_route():
    """
    Record a sale.

    Request body (required: date, product_category, amount, payment_method):
    {
        "date": "2024-03-15",
        "product_name": "장미 꽃다발",
        "product_category": "bouquet",
        "amount": 50000,
        "payment_method": "card",
        "card_company": "신한카드",      // card sales get fee/deposit defaults
        "customer_id": 3,                // or customer_name + customer_phone
        "reservation_channel": "kakaotalk"
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        return jsonify(sales_service.create_sale(data)), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception as e:
        return internal_error("sales.create", e)


@sales_bp.put("/<int:sale_id>")
@require_auth
def update_sale_route(sale_id: int):
    data = request.get_json(silent=True) or {}
    try:
        return jsonify(sales_service.update_sale(sale_id, data))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception as e:
        return internal_error("sales.update", e)


@sales_bp.patch("/<int:sale_id>/review")
@require_auth
def set_review_route(sale_id: int):
    data = request.get_json(silent=True) or {}
    if not isinstance(data.get("has_review"), bool):
        return jsonify({"error": "has_review must be a boolean"}), 400
    try:
        return jsonify(sales_service.set_review(sale_id, data["has_review"]))
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        return internal_error("sales.set_review", e)


@sales_bp.delete("/<int:sale_id>")
@require_auth
def delete_sale_route(sale_id: int):
    try:
        sales_service.delete_sale(sale_id)
        return jsonify({"success": True})
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        return internal_error("sales.delete", e)


@sales_bp.post("/<int:sale_id>/photos")
@require_auth
def upload_sale_photos_route(sale_id: int):
    """Multipart upload; every part named `files` is stored (images only, 10 per sale)."""
    files = [UploadFile.from_storage(f) for f in request.files.getlist("files") if f.filename]
    try:
        return jsonify(sales_service.upload_sale_photos(sale_id, files)), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        return internal_error("sales.upload_photos", e)


@sales_bp.delete("/<int:sale_id>/photos")
@require_auth
def delete_sale_photo_route(sale_id: int):
    data = request.get_json(silent=True) or {}
    url = data.get("url")
    if not url:
        return jsonify({"error": "url is required"}), 400
    try:
        return jsonify(sales_service.delete_sale_photo(sale_id, url))
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        return internal_error("sales.delete_photo", e)


@sales_bp.get("/<int:sale_id>/photo-card")
@require_auth
def get_sale_photo_card_route(sale_id: int):
    return jsonify({"card": photo_card_service.get_photo_card_by_sale(sale_id)})


@sales_bp.put("/<int:sale_id>/photo-card")
@require_auth
def upsert_sale_photo_card_route(sale_id: int):
    """Create or replace the gallery card attached to this sale."""
    data = request.get_json(silent=True) or {}
    try:
        card = photo_card_service.upsert_photo_card_for_sale(
            sale_id,
            title=data.get("title"),
            photos=data.get("photos"),
            description=data.get("description"),
            tags=data.get("tags"),
        )
        return jsonify(card)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        return internal_error("sales.upsert_photo_card", e)


@sales_bp.post("/deposits/confirm")
@require_auth
def confirm_deposits_route():
    """Bulk-confirm card deposits. Body: {"ids": [1, 2, 3]} (1-100 ids)."""
    data = request.get_json(silent=True) or {}
    try:
        return jsonify(deposit_service.confirm_multiple_deposits(data.get("ids")))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        return internal_error("sales.confirm_deposits", e)
