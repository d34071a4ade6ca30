# Overview: Read-only dashboard projections over users, students and their histories.

from __future__ import annotations

from ..extensions import db
from ..models import User, Student, AppleTransaction, LoyaltyBonus, ROLE_ADMIN, ROLE_ASSISTANT
from ..validation import NotFoundError, PermissionDeniedError, ValidationError
from . import reward_rules
from .apple_service import current_policy


VIEW_ASSISTANTS = "assistants"
VIEW_STUDENTS = "students"
VIEW_SELF = "self"
ROLE_STUDENT = "student"

RECENT_TRANSACTIONS_LIMIT = 20


def _loyalty_history(user_id: int) -> list[dict]:
    rows = (
        db.session.query(LoyaltyBonus)
        .filter_by(user_id=user_id)
        .order_by(LoyaltyBonus.created_at.desc(), LoyaltyBonus.id.desc())
        .all()
    )
    return [row.to_dict() for row in rows]


def _recent_transactions(*, user_id: int | None = None, student_id: int | None = None) -> list[dict]:
    q = db.session.query(AppleTransaction)
    if user_id is not None:
        q = q.filter(AppleTransaction.user_id == user_id)
    else:
        q = q.filter(AppleTransaction.student_id == student_id)
    rows = (
        q.order_by(AppleTransaction.created_at.desc(), AppleTransaction.id.desc())
        .limit(RECENT_TRANSACTIONS_LIMIT)
        .all()
    )
    return [row.to_dict() for row in rows]


def session_summary(sessions_attended: int, policy: reward_rules.RewardPolicy) -> dict:
    progress = reward_rules.milestone_progress(sessions_attended, policy)
    return {
        "sessions": sessions_attended,
        "currentSessionValue": reward_rules.session_value(sessions_attended, policy),
        "milestonesReached": reward_rules.milestones_reached(sessions_attended, policy),
        "nextMilestoneAt": progress.next_milestone_at,
        "sessionsUntilNextMilestone": progress.sessions_until_next,
        "nextSessionValue": progress.value_after_next,
    }


def staff_projection(user: User, *, with_transactions: bool = False) -> dict:
    policy = current_policy()
    history = _loyalty_history(user.id)
    body = {
        "id": user.id,
        "name": user.name,
        "barcode": user.barcode,
        "apples": user.apples,
        "role": user.role,
        "profilePicture": user.profile_picture_url,
        "bonusCount": len(history),
        "loyaltyHistory": history,
    }
    body.update(session_summary(user.sessions_attended or 0, policy))
    if with_transactions:
        body["recentTransactions"] = _recent_transactions(user_id=user.id)
    return body


def admin_roster(view_type: str) -> dict:
    """Every assistant (or student), richest first, with the grand total."""
    if view_type == VIEW_STUDENTS:
        students = db.session.query(Student).order_by(Student.apples.desc(), Student.name).all()
        rows = [
            {"id": s.id, "name": s.name, "barcode": s.barcode, "apples": s.apples}
            for s in students
        ]
        return {
            "isAdmin": True,
            "viewType": VIEW_STUDENTS,
            "students": rows,
            "totalApples": sum(row["apples"] or 0 for row in rows),
        }

    if view_type != VIEW_ASSISTANTS:
        raise ValidationError(f"Unknown viewType: {view_type}")

    assistants = (
        db.session.query(User)
        .filter_by(role=ROLE_ASSISTANT)
        .order_by(User.apples.desc(), User.name)
        .all()
    )
    rows = [staff_projection(a) for a in assistants]
    return {
        "isAdmin": True,
        "viewType": VIEW_ASSISTANTS,
        "assistants": rows,
        "totalApples": sum(row["apples"] or 0 for row in rows),
    }


def single_projection(name: str, role: str) -> dict:
    """One user or student by exact name."""
    if role == ROLE_STUDENT:
        student = db.session.query(Student).filter_by(name=name).first()
        if not student:
            raise NotFoundError("Student not found")
        return {
            "isAdmin": False,
            "id": student.id,
            "name": student.name,
            "barcode": student.barcode,
            "apples": student.apples,
            "recentTransactions": _recent_transactions(student_id=student.id),
        }

    user = db.session.query(User).filter_by(name=name, role=role).first()
    if not user:
        raise NotFoundError("User not found")
    body = staff_projection(user, with_transactions=True)
    body["isAdmin"] = False
    return body


def get_dashboard(viewer: User, name: str, role: str | None, view_type: str | None) -> dict:
    """
    Dashboard for viewer.

    role=admin (the default) is the admin roster and needs an admin
    viewer; viewType=self shows the admin's own record instead. Other roles
    look up a single record by name: admins may view anyone, assistants only
    themselves.
    """
    role = role or ROLE_ADMIN
    view_type = view_type or VIEW_ASSISTANTS

    if role == ROLE_ADMIN and view_type != VIEW_SELF:
        if not viewer.is_admin:
            raise PermissionDeniedError("Admin access required")
        return admin_roster(view_type)

    if role not in (ROLE_ADMIN, ROLE_ASSISTANT, ROLE_STUDENT):
        raise NotFoundError("User not found")

    if not viewer.is_admin and not (viewer.role == role and viewer.name == name):
        raise PermissionDeniedError("You can only view your own dashboard")

    return single_projection(name, role)
