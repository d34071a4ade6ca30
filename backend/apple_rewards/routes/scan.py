# Overview: Flask API route for barcode scans.

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, declared_actor_matches
from ..services import scan_service
from ..validation import ValidationError, NotFoundError, PermissionDeniedError, require_fields


scan_bp = Blueprint("scan", __name__, url_prefix="/api/scan")


@scan_bp.post("")
@require_auth
def scan_route():
    """
    Classify a scanned barcode and resolve what it points at.

    Body: {barcode, userRole, userId}

    Returns:
        200: {success, type, name, apples, studentId | assistantId | sessions, message}
        400: Missing fields
        403: Caller's role may not scan this kind of barcode
        404: No student/assistant with that barcode
    """
    try:
        data = request.get_json(silent=True) or {}
        require_fields(data, "barcode", "userRole", "userId")

        if not declared_actor_matches(data, "userId", "userRole"):
            return jsonify({"error": "userId/userRole do not match the signed-in user"}), 403

        result = scan_service.scan(g.current_user, str(data["barcode"]))
        return jsonify(result), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except PermissionDeniedError as e:
        return jsonify({"error": str(e)}), 403
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to process scan")
        return jsonify({"error": "Internal server error"}), 500
