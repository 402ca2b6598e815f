# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

Operators log in with username or email and receive a bearer token. Accounts
are created from the CLI (`flask users create`); there is no self-registration.
"""

from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth
from ..error_reporting import internal_error
from ..services import auth_service
from ..services import session_service


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate and create a session token.

    The token must be sent as `Authorization: Bearer <token>` on every
    protected route.
    """
    try:
        data = request.get_json(silent=True) or {}
        identifier = data.get("username") or data.get("email") or data.get("identifier")
        password = data.get("password")

        if not all([identifier, password]):
            return jsonify({"error": "username/email and password required"}), 400

        user = auth_service.authenticate(identifier, password)
        if not user:
            return jsonify({"error": "Invalid credentials"}), 401

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )

        return jsonify({
            "user": user.to_dict(),
            "token": token,
            "session": session.to_dict(),
            "message": "Login successful",
        }), 200

    except Exception as e:
        return internal_error("auth.login", e)


@auth_bp.post("/logout")
@require_auth
def logout_route():
    """Revoke the session token used for this request."""
    token = request.headers.get("Authorization", "").split(" ", 1)[-1].strip()
    session_service.revoke_session(token)
    return jsonify({"success": True, "message": "Logged out"})


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({
        "user": g.current_user.to_dict(),
        "session": g.session_token.to_dict(),
    })
