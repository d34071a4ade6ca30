# Overview: Flask API route for dashboard projections.

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth
from ..services import dashboard_service
from ..validation import ValidationError, NotFoundError, PermissionDeniedError


dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("/<path:name>")
@require_auth
def dashboard_route(name: str):
    """
    Dashboard data.

    Query params:
        role: admin (default) | assistant | student
        viewType: assistants (default) | students | self  (role=admin only)

    Returns:
        200: roster {isAdmin, viewType, assistants|students, totalApples}
             or single record {isAdmin: false, name, apples, sessions, ...}
        403: Viewer may not see this dashboard
        404: No record with that name and role
    """
    try:
        result = dashboard_service.get_dashboard(
            g.current_user,
            name,
            request.args.get("role"),
            request.args.get("viewType"),
        )
        return jsonify(result), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except PermissionDeniedError as e:
        return jsonify({"error": str(e)}), 403
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to load dashboard")
        return jsonify({"error": "Internal server error"}), 500
