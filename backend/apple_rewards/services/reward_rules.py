# Overview: Pure reward-accrual rules; no database access.

"""
Session value and loyalty bonus rules.

POLICY:
- A session is worth BASE_SESSION_VALUE apples.
- Every SESSIONS_PER_MILESTONE completed sessions the value grows by
  SESSION_VALUE_INCREMENT, permanently.
- The value of the session being completed is computed from the sessions
  already banked (pre-increment count).
- Optional count-based loyalty bonus: when the new session count is a
  multiple of LOYALTY_BONUS_INTERVAL, a one-time bonus of
  LOYALTY_BONUS_APPLES keyed "session_<count>" becomes due.
- Manual adjustments bypass all of this and are floored at zero.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from ..validation import ValidationError, INT64_MAX


# Balances live in a signed 64-bit column
MAX_APPLES = INT64_MAX


@dataclass(frozen=True)
class RewardPolicy:
    base_session_value: int = 150
    session_value_increment: int = 20
    sessions_per_milestone: int = 20
    loyalty_bonus_interval: int = 0
    loyalty_bonus_apples: int = 0

    def __post_init__(self):
        if self.sessions_per_milestone <= 0:
            raise ValueError("SESSIONS_PER_MILESTONE must be positive")
        if self.base_session_value < 0 or self.session_value_increment < 0:
            raise ValueError("BASE_SESSION_VALUE and SESSION_VALUE_INCREMENT cannot be negative")
        if self.loyalty_bonus_interval < 0 or self.loyalty_bonus_apples < 0:
            raise ValueError("LOYALTY_BONUS_INTERVAL and LOYALTY_BONUS_APPLES cannot be negative")

    @classmethod
    def from_config(cls, config: Mapping) -> "RewardPolicy":
        return cls(
            base_session_value=config.get("BASE_SESSION_VALUE", cls.base_session_value),
            session_value_increment=config.get("SESSION_VALUE_INCREMENT", cls.session_value_increment),
            sessions_per_milestone=config.get("SESSIONS_PER_MILESTONE", cls.sessions_per_milestone),
            loyalty_bonus_interval=config.get("LOYALTY_BONUS_INTERVAL", cls.loyalty_bonus_interval),
            loyalty_bonus_apples=config.get("LOYALTY_BONUS_APPLES", cls.loyalty_bonus_apples),
        )

    @property
    def loyalty_bonus_enabled(self) -> bool:
        return self.loyalty_bonus_interval > 0 and self.loyalty_bonus_apples > 0


DEFAULT_POLICY = RewardPolicy()


@dataclass(frozen=True)
class SessionAccrual:
    """Outcome of one qualifying attendance."""
    session_value: int
    new_sessions_attended: int
    milestones_reached: int
    bonus_type: Optional[str] = None
    bonus_apples: int = 0


@dataclass(frozen=True)
class MilestoneProgress:
    next_milestone_at: int
    sessions_until_next: int
    value_after_next: int


def session_value(sessions_attended: int, policy: RewardPolicy = DEFAULT_POLICY) -> int:
    """Apples earned by the next session given the sessions already completed."""
    if sessions_attended < 0:
        raise ValueError("sessions_attended cannot be negative")
    milestones = sessions_attended // policy.sessions_per_milestone
    return policy.base_session_value + milestones * policy.session_value_increment


def milestones_reached(sessions_attended: int, policy: RewardPolicy = DEFAULT_POLICY) -> int:
    return sessions_attended // policy.sessions_per_milestone


def loyalty_bonus_due(new_sessions_attended: int, policy: RewardPolicy = DEFAULT_POLICY) -> Optional[str]:
    """Bonus type label if new_sessions_attended lands on a bonus threshold."""
    if not policy.loyalty_bonus_enabled or new_sessions_attended <= 0:
        return None
    if new_sessions_attended % policy.loyalty_bonus_interval:
        return None
    return f"session_{new_sessions_attended}"


def accrue_session(sessions_attended: int, policy: RewardPolicy = DEFAULT_POLICY) -> SessionAccrual:
    """Apply one qualifying attendance to a user with sessions_attended completed sessions."""
    value = session_value(sessions_attended, policy)
    new_count = sessions_attended + 1
    bonus_type = loyalty_bonus_due(new_count, policy)
    return SessionAccrual(
        session_value=value,
        new_sessions_attended=new_count,
        milestones_reached=milestones_reached(new_count, policy),
        bonus_type=bonus_type,
        bonus_apples=policy.loyalty_bonus_apples if bonus_type else 0,
    )


def milestone_progress(sessions_attended: int, policy: RewardPolicy = DEFAULT_POLICY) -> MilestoneProgress:
    """Where the user stands relative to the next value increase."""
    per = policy.sessions_per_milestone
    next_at = (sessions_attended // per + 1) * per
    return MilestoneProgress(
        next_milestone_at=next_at,
        sessions_until_next=next_at - sessions_attended,
        value_after_next=session_value(next_at, policy),
    )


def apply_adjustment(balance: int, delta: int) -> int:
    """Manual (non-attendance) change; balances never go below zero."""
    return check_balance(max(0, balance + delta))


def check_balance(balance: int) -> int:
    """Reject a balance that would not fit the apples column."""
    if balance > MAX_APPLES:
        raise ValidationError("Balance out of range")
    return balance
