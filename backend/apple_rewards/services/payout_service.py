# Overview: Bulk payout of assistant rewards.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import User, AppleTransaction, ROLE_ASSISTANT
from ..validation import PermissionDeniedError
from .apple_service import lock_for_update


REASON_REWARDS_PAID = "Rewards paid"


def pay_rewards(actor: User) -> int:
    """
    Reset every assistant's balance to zero.

    Each reset balance is recorded as a negative AppleTransaction; all
    rows commit together or not at all. Returns how many assistants had a
    non-zero balance.
    """
    if not actor.is_admin:
        raise PermissionDeniedError("Unauthorized")

    assistants = lock_for_update(
        db.session.query(User).filter(User.role == ROLE_ASSISTANT, User.apples != 0)
    ).all()

    try:
        for assistant in assistants:
            db.session.add(AppleTransaction(
                user_id=assistant.id,
                admin_id=actor.id,
                apples_added=-assistant.apples,
                reason=REASON_REWARDS_PAID,
            ))
            assistant.apples = 0
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info("Admin %s paid out rewards to %s assistants", actor.id, len(assistants))
    return len(assistants)
