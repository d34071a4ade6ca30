# Overview: Flask API routes for student apple balances.

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_role, declared_actor_matches
from ..models import ROLE_ADMIN, ROLE_ASSISTANT
from ..services import apple_service
from ..validation import ValidationError, NotFoundError, parse_apples_delta


students_bp = Blueprint("students", __name__, url_prefix="/api/students")


@students_bp.post("/<int:student_id>/add-apples")
@require_auth
@require_role(ROLE_ADMIN, ROLE_ASSISTANT)
def add_student_apples_route(student_id: int):
    """
    Add (positive) or deduct (negative) apples; the balance never drops below zero.

    Body: {apples, adminId?}

    Returns:
        200: {success, name, apples, applesAdded, message}
        400: Missing or non-integer amount
        404: Student not found
    """
    try:
        data = request.get_json(silent=True) or {}
        delta = parse_apples_delta(data)

        if not declared_actor_matches(data, "adminId"):
            return jsonify({"error": "adminId does not match the signed-in user"}), 403

        change = apple_service.adjust_student_apples(student_id, delta, g.current_user.id)
        return jsonify(change.to_dict()), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to add student apples")
        return jsonify({"error": "Internal server error"}), 500
