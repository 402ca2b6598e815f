# Overview: Flask API routes for expense operations; parses input and returns JSON responses.

from flask import Blueprint, Response, request, jsonify

from ..decorators import require_auth
from ..error_reporting import internal_error
from ..services import expense_service, export_service
from ..validation import NotFoundError, ValidationError


expenses_bp = Blueprint("expenses", __name__, url_prefix="/api/expenses")


@expenses_bp.get("")
@require_auth
def list_expenses_route():
    try:
        return jsonify(expense_service.list_expenses(request.args.get("month")))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        return internal_error("expenses.list", e)


@expenses_bp.get("/export")
@require_auth
def export_expenses_route():
    month = request.args.get("month")
    try:
        body = export_service.expenses_csv(month)
        filename = export_service.export_filename("expenses", month)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        return internal_error("expenses.export", e)

    return Response(
        body,
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@expenses_bp.get("/<int:expense_id>")
@require_auth
def get_expense_route(expense_id: int):
    try:
        return jsonify(expense_service.get_expense(expense_id))
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        return internal_error("expenses.get_expense", e)


@expenses_bp.post("")
@require_auth
def create_expense_route():
    """
    Record an expense. total_amount is computed as unit_price * quantity;
    a client-supplied total is ignored.
    """
    data = request.get_json(silent=True) or {}
    try:
        return jsonify(expense_service.create_expense(data)), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        return internal_error("expenses.create", e)


@expenses_bp.put("/<int:expense_id>")
@require_auth
def update_expense_route(expense_id: int):
    data = request.get_json(silent=True) or {}
    try:
        return jsonify(expense_service.update_expense(expense_id, data))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        return internal_error("expenses.update", e)


@expenses_bp.delete("/<int:expense_id>")
@require_auth
def delete_expense_route(expense_id: int):
    try:
        expense_service.delete_expense(expense_id)
        return jsonify({"success": True})
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        return internal_error("expenses.delete_expense", e)
