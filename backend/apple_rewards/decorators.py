# Overview: Request decorators for API routes: session auth and role checks.

from functools import wraps
from flask import request, jsonify, g, current_app

from .services import session_service


def extract_token() -> str | None:
    """Bearer token from the Authorization header, else the session cookie."""
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1].strip() or None
    cookie_name = current_app.config.get("SESSION_COOKIE_NAME_AUTH", "auth_session")
    return request.cookies.get(cookie_name) or None


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user')


def require_auth(f):
    """
    Require a valid session and load the caller.

    Sets:
    - g.current_user: The authenticated User object
    - g.session_context: The full SessionContext object

    SECURITY: Returns 401 if:
    - No token in the Authorization header or session cookie
    - Invalid, expired or revoked token
    - User account deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = extract_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """Require the authenticated caller to hold one of roles."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if g.current_user.role not in roles:
                return jsonify({
                    "error": "Permission denied",
                    "required_roles": list(roles),
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def declared_actor_matches(data: dict, id_field: str, role_field: str | None = None) -> bool:
    """
    True unless the body names a different caller than the session.

    Clients still send their own id (and sometimes role); the session is
    authoritative and a mismatch is treated as a forged request.
    """
    user = g.current_user
    declared_id = data.get(id_field)
    if declared_id not in (None, "") and str(declared_id) != str(user.id):
        return False
    if role_field:
        declared_role = data.get(role_field)
        if declared_role not in (None, "") and declared_role != user.role:
            return False
    return True
