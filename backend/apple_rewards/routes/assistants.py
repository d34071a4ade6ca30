# Overview: Flask API routes for assistant balances and reward payouts.

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_role, declared_actor_matches
from ..models import ROLE_ADMIN
from ..services import apple_service, payout_service
from ..validation import (
    ValidationError,
    NotFoundError,
    PermissionDeniedError,
    parse_apples_delta,
    parse_flag,
    require_fields,
)


assistants_bp = Blueprint("assistants", __name__, url_prefix="/api/assistants")


@assistants_bp.post("/<int:assistant_id>/add-apples")
@require_auth
@require_role(ROLE_ADMIN)
def add_assistant_apples_route(assistant_id: int):
    """
    Adjust an assistant's apples, or record a session attendance.

    Body: {apples, adminId?, isSessionAttendance?}

    With isSessionAttendance and a positive amount, the amount is replaced
    by the assistant's current session value and the session counter grows.

    Returns:
        200: {success, name, apples, applesAdded, sessionsAttended, currentSessionValue, message}
        400: Missing or non-integer amount
        404: Assistant not found
    """
    try:
        data = request.get_json(silent=True) or {}
        delta = parse_apples_delta(data)
        is_session = parse_flag(data.get("isSessionAttendance", False))

        if not declared_actor_matches(data, "adminId"):
            return jsonify({"error": "adminId does not match the signed-in user"}), 403

        change = apple_service.adjust_assistant_apples(
            assistant_id,
            delta,
            g.current_user.id,
            is_session_attendance=is_session,
        )
        return jsonify(change.to_dict()), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to add assistant apples")
        return jsonify({"error": "Internal server error"}), 500


@assistants_bp.post("/pay-rewards")
@require_auth
def pay_rewards_route():
    """
    Reset every assistant's balance to zero (admins only).

    Body: {userId}

    Returns:
        200: {success, message, assistantsReset}
        400: Missing userId
        403: Caller is not an admin
    """
    try:
        data = request.get_json(silent=True) or {}
        require_fields(data, "userId")

        if not declared_actor_matches(data, "userId"):
            return jsonify({"error": "Unauthorized"}), 403

        count = payout_service.pay_rewards(g.current_user)
        return jsonify({
            "success": True,
            "message": "All assistant scores have been reset to zero",
            "assistantsReset": count,
        }), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except PermissionDeniedError as e:
        return jsonify({"error": str(e)}), 403
    except Exception:
        current_app.logger.exception("Failed to pay rewards")
        return jsonify({"error": "Failed to reset scores"}), 500
