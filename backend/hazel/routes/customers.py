# Overview: Flask API routes for customer operations; parses input and returns JSON responses.

"""
Customer Routes

Customers are keyed by phone number; a duplicate phone is a 409 with
"phone number is already registered". Purchase totals are computed from sales
on every read.
"""

from flask import Blueprint, request, jsonify

from ..decorators import require_auth
from ..error_reporting import internal_error
from ..services import customer_service, photo_card_service
from ..validation import ConflictError, NotFoundError, ValidationError


customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_auth
def list_customers_route():
    """All customers with purchase stats, highest total spend first."""
    try:
        return jsonify(customer_service.list_customers())
    except Exception as e:
        return internal_error("customers.list", e)


@customers_bp.get("/search")
@require_auth
def search_customers_route():
    """
    Name search for autocomplete.

    Query parameters:
    - q: 1-100 characters (required)
    """
    try:
        return jsonify(customer_service.search_customers_by_name(request.args.get("q")))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        return internal_error("customers.search_customers", e)


@customers_bp.get("/check-phone")
@require_auth
def check_phone_route():
    """
    Is this phone already registered?

    Query parameters:
    - phone: phone number in any format
    - exclude_id: customer to ignore (when editing)
    """
    phone = request.args.get("phone")
    exclude_id = request.args.get("exclude_id", type=int)
    existing = customer_service.check_phone_duplicate(phone, exclude_id=exclude_id)
    if existing is None:
        return jsonify({"exists": False, "customer": None})
    return jsonify({
        "exists": True,
        "customer": {"id": existing.id, "name": existing.name, "phone": existing.phone},
    })


@customers_bp.get("/<int:customer_id>")
@require_auth
def get_customer_route(customer_id: int):
    try:
        return jsonify(customer_service.get_customer(customer_id))
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        return internal_error("customers.get_customer", e)


@customers_bp.post("")
@require_auth
def create_customer_route():
    data = request.get_json(silent=True) or {}
    try:
        return jsonify(customer_service.create_customer(data)), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception as e:
        return internal_error("customers.create", e)


@customers_bp.put("/<int:customer_id>")
@require_auth
def update_customer_route(customer_id: int):
    data = request.get_json(silent=True) or {}
    try:
        return jsonify(customer_service.update_customer(customer_id, data))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception as e:
        return internal_error("customers.update", e)


@customers_bp.patch("/<int:customer_id>/grade")
@require_auth
def update_grade_route(customer_id: int):
    data = request.get_json(silent=True) or {}
    try:
        return jsonify(customer_service.update_customer_grade(customer_id, data.get("grade")))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        return internal_error("customers.update_grade", e)


@customers_bp.delete("/<int:customer_id>")
@require_auth
def delete_customer_route(customer_id: int):
    try:
        customer_service.delete_customer(customer_id)
        return jsonify({"success": True})
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        return internal_error("customers.delete", e)


@customers_bp.get("/<int:customer_id>/sales")
@require_auth
def customer_sales_route(customer_id: int):
    try:
        return jsonify(customer_service.get_customer_sales(customer_id))
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        return internal_error("customers.customer_sales", e)


@customers_bp.get("/<int:customer_id>/photo-cards")
@require_auth
def customer_photo_cards_route(customer_id: int):
    """Gallery cards from this customer's sales (cursor-paginated like /api/photo-cards)."""
    try:
        return jsonify(photo_card_service.list_photo_cards(
            cursor=request.args.get("cursor"),
            customer_id=customer_id,
        ))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        return internal_error("customers.customer_photo_cards", e)
