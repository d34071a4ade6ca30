# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/apple_rewards/routes/auth.py
"""
Authentication API routes

Login issues a server-side session token. The token is returned in the
body (for Authorization: Bearer) and mirrored into an HttpOnly cookie for
browser clients.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..decorators import require_auth, extract_token


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _cookie_name() -> str:
    return current_app.config.get("SESSION_COOKIE_NAME_AUTH", "auth_session")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate by email and password and create a session token.

    Returns:
        200: {id, name, email, role, token}
        400: Missing email or password
        401: Invalid credentials
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "Email and password required"}), 400

        user = auth_service.authenticate(email, password)
        if not user:
            return jsonify({"error": "Invalid email or password"}), 401

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr
        )

        response = jsonify({
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "role": user.role,
            "token": token,
            "session": session.to_dict(),
            "message": "Login successful"
        })
        response.set_cookie(
            _cookie_name(),
            token,
            max_age=int(session_service.session_lifetime().total_seconds()),
            httponly=True,
            secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
            samesite="Lax",
        )
        return response, 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
def logout_route():
    """Revoke the caller's session token and clear the cookie."""
    try:
        token = extract_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        if not session_service.revoke_session(token, reason="User logout"):
            return jsonify({"error": "Invalid or expired token"}), 401

        response = jsonify({"message": "Logout successful"})
        response.delete_cookie(_cookie_name())
        return response, 200

    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/validate")
@require_auth
def validate_route():
    """Return the user behind a still-valid session."""
    user = g.current_user
    return jsonify({
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "message": "Session valid"
    }), 200
