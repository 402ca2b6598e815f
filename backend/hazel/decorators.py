# Overview: Request decorators for API routes.

import hmac
from functools import wraps
from flask import request, jsonify, g, current_app

from .services import session_service


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require an authenticated operator.

    Sets g.current_user and g.session_token. Returns 401 when the
    Authorization header is missing, or the token is invalid, expired,
    revoked, or belongs to a deactivated account. Runs before any payload
    validation in the wrapped route.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.session_token = context.session

        return f(*args, **kwargs)

    return decorated_function


def require_cron_secret(f):
    """Scheduled jobs authenticate with `Authorization: Bearer <CRON_SECRET>`."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        secret = current_app.config.get("CRON_SECRET")
        token = _bearer_token()
        if not secret or not token or not hmac.compare_digest(token, secret):
            return jsonify({"error": "Unauthorized"}), 401
        return f(*args, **kwargs)

    return decorated_function
