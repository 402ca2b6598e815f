# Overview: Flask API routes for reservation operations; parses input and returns JSON responses.

"""
Reservation Routes

Lifecycle transitions that are not allowed (editing a completed or cancelled
reservation, converting one twice) answer 409.
"""

from flask import Blueprint, request, jsonify

from ..decorators import require_auth
from ..error_reporting import internal_error
from ..services import reservation_service
from ..validation import ConflictError, NotFoundError, StateError, ValidationError


reservations_bp = Blueprint("reservations", __name__, url_prefix="/api/reservations")


@reservations_bp.get("")
@require_auth
def list_reservations_route():
    """Reservations for a month (?month=YYYY-MM), by date then time."""
    try:
        return jsonify(reservation_service.list_reservations(request.args.get("month")))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        return internal_error("reservations.list", e)


@reservations_bp.get("/<int:reservation_id>")
@require_auth
def get_reservation_route(reservation_id: int):
    try:
        return jsonify(reservation_service.get_reservation(reservation_id))
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        return internal_error("reservations.get_reservation", e)


@reservations_bp.post("")
@require_auth
def create_reservation_route():
    data = request.get_json(silent=True) or {}
    try:
        return jsonify(reservation_service.create_reservation(data)), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except (ConflictError, StateError) as e:
        return jsonify({"error": str(e)}), 409
    except Exception as e:
        return internal_error("reservations.create", e)


@reservations_bp.put("/<int:reservation_id>")
@require_auth
def update_reservation_route(reservation_id: int):
    data = request.get_json(silent=True) or {}
    try:
        return jsonify(reservation_service.update_reservation(reservation_id, data))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except (ConflictError, StateError) as e:
        return jsonify({"error": str(e)}), 409
    except Exception as e:
        return internal_error("reservations.update", e)


@reservations_bp.delete("/<int:reservation_id>")
@require_auth
def delete_reservation_route(reservation_id: int):
    try:
        reservation_service.delete_reservation(reservation_id)
        return jsonify({"success": True})
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        return internal_error("reservations.delete", e)


@reservations_bp.post("/<int:reservation_id>/convert")
@require_auth
def convert_reservation_route(reservation_id: int):
    """
    Record a sale from the reservation and mark it completed, atomically.

    Request body: sale fields (product_category and payment_method at least);
    date, amount, and customer default to the reservation's.

    Returns:
        {"reservation": Reservation, "sale": Sale}
    """
    data = request.get_json(silent=True) or {}
    try:
        return jsonify(reservation_service.convert_reservation_to_sale(reservation_id, data)), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except (ConflictError, StateError) as e:
        return jsonify({"error": str(e)}), 409
    except Exception as e:
        return internal_error("reservations.convert", e)
