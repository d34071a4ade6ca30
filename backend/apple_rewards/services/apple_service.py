# Overview: Service-layer operations for apple balances; encapsulates business logic and database work.

"""
Apple balance changes.

Every change in this module writes the new balance and one
AppleTransaction in the same commit. Qualifying attendance goes through
reward_rules.accrue_session; everything else is a floored adjustment.

LOYALTY BONUS IDEMPOTENCY:
The loyalty_history table has a unique (user_id, bonus_type) constraint.
The bonus row is inserted inside a savepoint before the apples are
credited; an IntegrityError there means the bonus was already credited
and the credit is skipped.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import User, Student, AppleTransaction, LoyaltyBonus, ROLE_ASSISTANT
from ..validation import NotFoundError
from . import reward_rules
from .reward_rules import RewardPolicy


REASON_MANUAL_ADDITION = "Manual addition"
REASON_DEDUCTION = "Apple deduction"
REASON_SESSION_ATTENDANCE = "Session attendance"
REASON_SESSION_CHECK_IN = "Session check-in"


@dataclass
class AppleChange:
    """Result of a balance change, shaped for the JSON responses."""
    name: str
    apples: int
    apples_added: int
    message: str
    sessions_attended: Optional[int] = None
    current_session_value: Optional[int] = None
    milestones_reached: Optional[int] = None
    loyalty_added: int = 0

    def to_dict(self) -> dict:
        body = {
            "success": True,
            "name": self.name,
            "apples": self.apples,
            "applesAdded": self.apples_added,
            "message": self.message,
        }
        if self.sessions_attended is not None:
            body["sessionsAttended"] = self.sessions_attended
            body["sessions"] = self.sessions_attended
            body["currentSessionValue"] = self.current_session_value
            body["milestonesReached"] = self.milestones_reached
        if self.loyalty_added:
            body["loyaltyAdded"] = self.loyalty_added
        return body


def current_policy() -> RewardPolicy:
    return RewardPolicy.from_config(current_app.config)


def lock_for_update(query):
    """
    Row-level lock for balance read-modify-write.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def get_student_for_update(student_id: int) -> Student:
    student = lock_for_update(db.session.query(Student).filter_by(id=student_id)).first()
    if not student:
        raise NotFoundError("Student not found")
    return student


def get_assistant_for_update(assistant_id: int) -> User:
    assistant = lock_for_update(
        db.session.query(User).filter_by(id=assistant_id, role=ROLE_ASSISTANT)
    ).first()
    if not assistant:
        raise NotFoundError("Assistant not found")
    return assistant


def _log_transaction(*, apples_added: int, reason: str, admin_id: int | None,
                     user_id: int | None = None, student_id: int | None = None) -> AppleTransaction:
    txn = AppleTransaction(
        user_id=user_id,
        student_id=student_id,
        admin_id=admin_id,
        apples_added=apples_added,
        reason=reason,
    )
    db.session.add(txn)
    return txn


def _adjustment_message(delta: int) -> str:
    if delta == 0:
        return "Balance unchanged"
    verb = "Added" if delta > 0 else "Subtracted"
    return f"{verb} {abs(delta)} apples"


def _bonus_already_credited(user_id: int, bonus_type: str) -> bool:
    return db.session.query(LoyaltyBonus.id).filter_by(
        user_id=user_id, bonus_type=bonus_type
    ).first() is not None


def credit_loyalty_bonus(user: User, bonus_type: str, bonus_apples: int) -> int:
    """
    Credit a one-time loyalty bonus to user.

    Returns the apples credited: bonus_apples the first time for
    (user, bonus_type), 0 on every later call. Does not commit.
    """
    if _bonus_already_credited(user.id, bonus_type):
        return 0

    try:
        with db.session.begin_nested():
            db.session.add(LoyaltyBonus(
                user_id=user.id,
                bonus_type=bonus_type,
                bonus_apples=bonus_apples,
            ))
            db.session.flush()
    except IntegrityError:
        # Lost a race with a concurrent check-in for the same threshold
        current_app.logger.info(
            "Loyalty bonus %s already credited to user %s", bonus_type, user.id
        )
        return 0

    user.apples = (user.apples or 0) + bonus_apples
    current_app.logger.info(
        "Credited loyalty bonus %s (+%s) to user %s", bonus_type, bonus_apples, user.id
    )
    return bonus_apples


def record_session(user: User, actor_id: int | None, reason: str,
                   policy: RewardPolicy | None = None) -> AppleChange:
    """
    Apply one qualifying attendance to user. Does not commit.

    The session value comes from the sessions already banked; the counter
    is incremented and any due loyalty bonus is credited once.
    """
    policy = policy or current_policy()
    accrual = reward_rules.accrue_session(user.sessions_attended or 0, policy)
    reward_rules.check_balance((user.apples or 0) + accrual.session_value + accrual.bonus_apples)

    user.apples = (user.apples or 0) + accrual.session_value
    user.sessions_attended = accrual.new_sessions_attended

    _log_transaction(
        user_id=user.id,
        admin_id=actor_id,
        apples_added=accrual.session_value,
        reason=reason,
    )

    loyalty_added = 0
    if accrual.bonus_type:
        loyalty_added = credit_loyalty_bonus(user, accrual.bonus_type, accrual.bonus_apples)

    current_app.logger.info(
        "Session %s recorded for user %s: +%s apples",
        accrual.new_sessions_attended, user.id, accrual.session_value,
    )

    return AppleChange(
        name=user.name,
        apples=user.apples,
        apples_added=accrual.session_value,
        message=_session_message(accrual, policy, loyalty_added),
        sessions_attended=accrual.new_sessions_attended,
        current_session_value=reward_rules.session_value(accrual.new_sessions_attended, policy),
        milestones_reached=accrual.milestones_reached,
        loyalty_added=loyalty_added,
    )


def _session_message(accrual: reward_rules.SessionAccrual, policy: RewardPolicy, loyalty_added: int) -> str:
    message = (
        f"Session {accrual.new_sessions_attended} recorded! "
        f"+{accrual.session_value} apples (Session value: {accrual.session_value} apples)"
    )
    if accrual.new_sessions_attended % policy.sessions_per_milestone == 0:
        next_value = reward_rules.session_value(accrual.new_sessions_attended, policy)
        message += f" - Value increased! Next session worth {next_value} apples!"
    else:
        progress = reward_rules.milestone_progress(accrual.new_sessions_attended, policy)
        plural = "s" if progress.sessions_until_next > 1 else ""
        message += (
            f" - {progress.sessions_until_next} more session{plural} "
            f"until value increases to {progress.value_after_next}!"
        )
    if loyalty_added:
        message += f" + {loyalty_added} loyalty bonus"
    return message


def adjust_student_apples(student_id: int, delta: int, actor_id: int | None) -> AppleChange:
    """Manual +/- on a student's balance, floored at zero."""
    student = get_student_for_update(student_id)

    previous = student.apples or 0
    student.apples = reward_rules.apply_adjustment(previous, delta)
    applied = student.apples - previous

    _log_transaction(
        student_id=student.id,
        admin_id=actor_id,
        apples_added=applied,
        reason=REASON_MANUAL_ADDITION if delta >= 0 else REASON_DEDUCTION,
    )
    db.session.commit()

    return AppleChange(
        name=student.name,
        apples=student.apples,
        apples_added=applied,
        message=_adjustment_message(applied),
    )


def adjust_assistant_apples(assistant_id: int, delta: int, actor_id: int | None,
                            is_session_attendance: bool = False) -> AppleChange:
    """
    Change an assistant's balance.

    A positive delta flagged as session attendance is replaced by the
    session value from the reward rules; anything else is a floored
    adjustment that leaves the session counter alone.
    """
    assistant = get_assistant_for_update(assistant_id)
    policy = current_policy()

    if is_session_attendance and delta > 0:
        change = record_session(assistant, actor_id, REASON_SESSION_ATTENDANCE, policy)
        db.session.commit()
        return change

    previous = assistant.apples or 0
    assistant.apples = reward_rules.apply_adjustment(previous, delta)
    applied = assistant.apples - previous

    _log_transaction(
        user_id=assistant.id,
        admin_id=actor_id,
        apples_added=applied,
        reason=REASON_MANUAL_ADDITION if delta >= 0 else REASON_DEDUCTION,
    )
    db.session.commit()

    sessions = assistant.sessions_attended or 0
    return AppleChange(
        name=assistant.name,
        apples=assistant.apples,
        apples_added=applied,
        message=_adjustment_message(applied),
        sessions_attended=sessions,
        current_session_value=reward_rules.session_value(sessions, policy),
        milestones_reached=reward_rules.milestones_reached(sessions, policy),
    )


def check_in(user: User) -> AppleChange:
    """Self check-in from a session barcode scan; the user is also the actor."""
    locked = lock_for_update(db.session.query(User).filter_by(id=user.id)).first()
    if not locked:
        raise NotFoundError("User not found")
    change = record_session(locked, locked.id, REASON_SESSION_CHECK_IN)
    db.session.commit()
    return change
