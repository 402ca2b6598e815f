# Overview: Flask API routes for shop settings; parses input and returns JSON responses.

"""
Settings Routes

Option lists (sale categories, payment methods, expense categories, expense
payment methods) share one set of routes keyed by the URL slug. Reads fall
back to the built-in defaults while a table has no rows.

Card companies and product categories are deactivated rather than deleted so
historical sales keep their references.
"""

from flask import Blueprint, request, jsonify

from ..decorators import require_auth
from ..error_reporting import internal_error
from ..services import settings_service
from ..validation import ConflictError, NotFoundError, ValidationError


settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")

OPTION_SLUGS = {
    "sale-categories": "sale_categories",
    "payment-methods": "payment_methods",
    "expense-categories": "expense_categories",
    "expense-payment-methods": "expense_payment_methods",
}


def _kind_or_404(slug: str):
    kind = OPTION_SLUGS.get(slug)
    if kind is None:
        return None, (jsonify({"error": "Unknown settings list"}), 404)
    return kind, None


# ---------------------------------------------------------------------------
# Card companies
# ---------------------------------------------------------------------------

@settings_bp.get("/card-companies")
@require_auth
def list_card_companies_route():
    return jsonify(settings_service.list_card_companies())


@settings_bp.post("/card-companies")
@require_auth
def create_card_company_route():
    """Body: {"name": "신한카드", "fee_rate": 2.1, "deposit_days": 2}"""
    data = request.get_json(silent=True) or {}
    try:
        return jsonify(settings_service.create_card_company(data)), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception as e:
        return internal_error("settings.create_card_company", e)


@settings_bp.put("/card-companies/<int:company_id>")
@require_auth
def update_card_company_route(company_id: int):
    data = request.get_json(silent=True) or {}
    try:
        return jsonify(settings_service.update_card_company(company_id, data))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception as e:
        return internal_error("settings.update_card_company", e)


@settings_bp.delete("/card-companies/<int:company_id>")
@require_auth
def deactivate_card_company_route(company_id: int):
    try:
        settings_service.deactivate_card_company(company_id)
        return jsonify({"success": True})
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        return internal_error("settings.deactivate_card_company", e)


# ---------------------------------------------------------------------------
# Product categories
# ---------------------------------------------------------------------------

@settings_bp.get("/product-categories")
@require_auth
def list_product_categories_route():
    return jsonify(settings_service.list_product_categories())


@settings_bp.post("/product-categories")
@require_auth
def create_product_category_route():
    data = request.get_json(silent=True) or {}
    try:
        return jsonify(settings_service.create_product_category(data)), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception as e:
        return internal_error("settings.create_product_category", e)


@settings_bp.put("/product-categories/<int:category_id>")
@require_auth
def update_product_category_route(category_id: int):
    data = request.get_json(silent=True) or {}
    try:
        return jsonify(settings_service.update_product_category(category_id, data))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception as e:
        return internal_error("settings.update_product_category", e)


@settings_bp.delete("/product-categories/<int:category_id>")
@require_auth
def deactivate_product_category_route(category_id: int):
    try:
        settings_service.deactivate_product_category(category_id)
        return jsonify({"success": True})
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        return internal_error("settings.deactivate_product_category", e)


@settings_bp.put("")
@require_auth
def save_all_settings_route():
    """
    Save the settings screen in one transaction.

    Request body:
    {
        "card_settings": [{"id": 1, "fee_rate": 2.1, "deposit_days": 2}],
        "categories": ["꽃다발", "꽃바구니"]
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        return jsonify(settings_service.save_all_settings(data.get("card_settings"), data.get("categories")))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        return internal_error("settings.save_all", e)


# ---------------------------------------------------------------------------
# Option lists
# ---------------------------------------------------------------------------

@settings_bp.get("/<slug>")
@require_auth
def list_options_route(slug: str):
    kind, error = _kind_or_404(slug)
    if error:
        return error
    return jsonify(settings_service.list_options(kind))


@settings_bp.post("/<slug>")
@require_auth
def create_option_route(slug: str):
    """Body: {"label": "꽃다발", "color": "#f43f5e"}; value is derived from the label."""
    kind, error = _kind_or_404(slug)
    if error:
        return error
    data = request.get_json(silent=True) or {}
    try:
        return jsonify(settings_service.create_option(kind, data.get("label"), data.get("color"))), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception as e:
        return internal_error("settings.create_option", e)


@settings_bp.put("/<slug>/<int:option_id>")
@require_auth
def update_option_route(slug: str, option_id: int):
    kind, error = _kind_or_404(slug)
    if error:
        return error
    data = request.get_json(silent=True) or {}
    try:
        return jsonify(settings_service.update_option(kind, option_id, data.get("label"), data.get("color")))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        return internal_error("settings.update_option", e)


@settings_bp.delete("/<slug>/<int:option_id>")
@require_auth
def delete_option_route(slug: str, option_id: int):
    kind, error = _kind_or_404(slug)
    if error:
        return error
    try:
        settings_service.delete_option(kind, option_id)
        return jsonify({"success": True})
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        return internal_error("settings.delete_option", e)
