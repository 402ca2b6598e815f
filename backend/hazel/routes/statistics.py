# Overview: Flask API routes for sales and expense statistics; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth
from ..error_reporting import internal_error
from ..services import statistics_service
from ..validation import ValidationError


statistics_bp = Blueprint("statistics", __name__, url_prefix="/api/statistics")


@statistics_bp.get("/categories")
@require_auth
def category_stats_route():
    try:
        return jsonify(statistics_service.category_stats(request.args.get("month")))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        return internal_error("statistics.categories", e)


@statistics_bp.get("/payment-methods")
@require_auth
def payment_method_stats_route():
    try:
        return jsonify(statistics_service.payment_method_stats(request.args.get("month")))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        return internal_error("statistics.payment_methods", e)


@statistics_bp.get("/channels")
@require_auth
def channel_stats_route():
    try:
        return jsonify(statistics_service.channel_stats(request.args.get("month")))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        return internal_error("statistics.channels", e)


@statistics_bp.get("/customers")
@require_auth
def customer_stats_route():
    try:
        return jsonify(statistics_service.customer_stats(request.args.get("month")))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        return internal_error("statistics.customers", e)


@statistics_bp.get("/expense-categories")
@require_auth
def expense_category_stats_route():
    try:
        return jsonify(statistics_service.expense_category_stats(request.args.get("month")))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        return internal_error("statistics.expense_categories", e)


@statistics_bp.get("/monthly-trend")
@require_auth
def monthly_trend_route():
    months = request.args.get("months", 6, type=int)
    try:
        return jsonify(statistics_service.monthly_sales_trend(months))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        return internal_error("statistics.monthly_trend", e)


@statistics_bp.get("/daily-trend")
@require_auth
def daily_trend_route():
    try:
        return jsonify(statistics_service.daily_sales_trend(request.args.get("month")))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        return internal_error("statistics.daily_trend", e)
