# Overview: Flask API routes for the dashboard summaries; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth
from ..error_reporting import internal_error
from ..services import dashboard_service
from ..validation import ValidationError


dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("/today")
@require_auth
def today_summary_route():
    try:
        return jsonify(dashboard_service.today_summary())
    except Exception as e:
        return internal_error("dashboard.today", e)


@dashboard_bp.get("/month")
@require_auth
def month_summary_route():
    try:
        return jsonify(dashboard_service.month_summary(request.args.get("month")))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        return internal_error("dashboard.month", e)


@dashboard_bp.get("/recent-sales")
@require_auth
def recent_sales_route():
    limit = request.args.get("limit", 10, type=int)
    try:
        return jsonify(dashboard_service.recent_sales(limit))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        return internal_error("dashboard.recent_sales", e)
