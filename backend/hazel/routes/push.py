# Overview: Flask API routes for web push subscriptions and sends; parses input and returns JSON responses.

"""
Push Routes

Sends answer 503 when the server has no VAPID keys configured; the rest of
the API works without them.
"""

from flask import Blueprint, current_app, request, jsonify, g

from ..decorators import require_auth
from ..error_reporting import internal_error
from ..services import push_service
from ..services.push_service import PushConfigurationError
from ..validation import ValidationError


push_bp = Blueprint("push", __name__, url_prefix="/api/push")


@push_bp.get("/vapid-public-key")
@require_auth
def vapid_public_key_route():
    key = current_app.config.get("VAPID_PUBLIC_KEY")
    if not key:
        return jsonify({"error": "Push notifications are not configured"}), 503
    return jsonify({"public_key": key})


@push_bp.post("/subscribe")
@require_auth
def subscribe_route():
    """Body: a browser PushSubscription, {"endpoint", "keys": {"p256dh", "auth"}}"""
    data = request.get_json(silent=True) or {}
    try:
        return jsonify(push_service.subscribe(g.current_user.id, data.get("endpoint"), data.get("keys")))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        return internal_error("push.subscribe", e)


@push_bp.post("/unsubscribe")
@require_auth
def unsubscribe_route():
    data = request.get_json(silent=True) or {}
    try:
        return jsonify(push_service.unsubscribe(g.current_user.id, data.get("endpoint")))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        return internal_error("push.unsubscribe", e)


@push_bp.get("/status")
@require_auth
def status_route():
    return jsonify(push_service.subscription_status(g.current_user.id))


@push_bp.post("/test")
@require_auth
def test_route():
    try:
        return jsonify(push_service.send_test_notification(g.current_user.id))
    except PushConfigurationError as e:
        return jsonify({"error": str(e)}), 503
    except Exception as e:
        return internal_error("push.test", e)


@push_bp.post("/send")
@require_auth
def send_route():
    """
    Send to every active subscription.

    Request body:
    {"title": "...", "body": "...", "tag"?: "...", "url"?: "/", "requireInteraction"?: false}
    """
    data = request.get_json(silent=True) or {}
    try:
        payload = push_service.build_payload(
            title=data.get("title"),
            body=data.get("body"),
            tag=data.get("tag"),
            url=data.get("url"),
            require_interaction=bool(data.get("requireInteraction")),
        )
        return jsonify(push_service.send_push_to_all(payload))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except PushConfigurationError as e:
        return jsonify({"error": str(e)}), 503
    except Exception as e:
        return internal_error("push.send", e)
