# Overview: Flask API routes for card deposit tracking; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify

from ..decorators import require_auth
from ..error_reporting import internal_error
from ..services import deposit_service
from ..validation import NotFoundError, ValidationError


deposits_bp = Blueprint("deposits", __name__, url_prefix="/api/deposits")


@deposits_bp.get("")
@require_auth
def list_deposits_route():
    """
    Card sales for a month with their settlement state.

    Query parameters:
    - month: YYYY-MM (default: current month)
    - status: all | pending | completed (default: all)
    - card_company: issuer name or all (default: all)
    """
    try:
        return jsonify(deposit_service.list_deposits(
            request.args.get("month"),
            status=request.args.get("status", "all"),
            card_company=request.args.get("card_company", "all"),
        ))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        return internal_error("deposits.list", e)


@deposits_bp.get("/pending")
@require_auth
def pending_deposits_route():
    try:
        return jsonify(deposit_service.list_pending_deposits(request.args.get("month")))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        return internal_error("deposits.pending_deposits", e)


@deposits_bp.get("/completed")
@require_auth
def completed_deposits_route():
    try:
        return jsonify(deposit_service.list_completed_deposits(request.args.get("month")))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        return internal_error("deposits.completed_deposits", e)


@deposits_bp.get("/summary")
@require_auth
def deposits_summary_route():
    try:
        return jsonify(deposit_service.deposits_summary(request.args.get("month")))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        return internal_error("deposits.summary", e)


@deposits_bp.post("/<int:sale_id>/confirm")
@require_auth
def confirm_deposit_route(sale_id: int):
    try:
        return jsonify(deposit_service.confirm_deposit(sale_id))
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        return internal_error("deposits.confirm_deposit", e)


@deposits_bp.post("/confirm")
@require_auth
def confirm_multiple_route():
    data = request.get_json(silent=True) or {}
    try:
        return jsonify(deposit_service.confirm_multiple_deposits(data.get("ids")))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        return internal_error("deposits.confirm_multiple", e)


@deposits_bp.post("/<int:sale_id>/revert")
@require_auth
def revert_deposit_route(sale_id: int):
    try:
        return jsonify(deposit_service.revert_deposit(sale_id))
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        return internal_error("deposits.revert_deposit", e)
