# Overview: Scheduled-job endpoints, authenticated with the cron secret instead of a user session.

from flask import Blueprint, jsonify

from ..decorators import require_cron_secret
from ..error_reporting import internal_error
from ..services import reminder_service
from ..services.push_service import PushConfigurationError


cron_bp = Blueprint("cron", __name__, url_prefix="/api/cron")


@cron_bp.get("/daily-reminder")
@require_cron_secret
def daily_reminder_route():
    """Run every morning: today's reservation summary plus advance reminders."""
    try:
        return jsonify(reminder_service.send_daily_reminder())
    except PushConfigurationError as e:
        return jsonify({"error": str(e)}), 503
    except Exception as e:
        return internal_error("cron.daily_reminder", e)


@cron_bp.get("/scheduled-reminders")
@require_cron_secret
def scheduled_reminders_route():
    """Run hourly: reminders whose reminder_at fell within the last hour."""
    try:
        return jsonify(reminder_service.send_scheduled_reminders())
    except PushConfigurationError as e:
        return jsonify({"error": str(e)}), 503
    except Exception as e:
        return internal_error("cron.scheduled_reminders", e)
