from __future__ import annotations

from ..extensions import db
from apple_rewards.time_utils import to_utc_z


class AppleTransaction(db.Model):
    """
    Append-only ledger of apple movements.

    Exactly one of user_id / student_id identifies whose balance moved;
    admin_id is the acting staff member.

    IMMUTABLE: Records are never updated or deleted.
    """
    __tablename__ = "apple_transactions"
    __table_args__ = (
        db.CheckConstraint(
            "(user_id IS NULL) <> (student_id IS NULL)",
            name="ck_apple_transactions_single_target",
        ),
        db.Index("ix_apple_txns_user_created", "user_id", "created_at"),
        db.Index("ix_apple_txns_student_created", "student_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    student_id = db.Column(db.Integer, db.ForeignKey("students.id"), nullable=True)
    admin_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    apples_added = db.Column(db.Integer, nullable=False)  # Negative for deductions and payouts
    reason = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "student_id": self.student_id,
            "admin_id": self.admin_id,
            "apples_added": self.apples_added,
            "reason": self.reason,
            "created_at": to_utc_z(self.created_at),
        }


class LoyaltyBonus(db.Model):
    """
    One-time loyalty credits.

    WHY: The (user_id, bonus_type) unique constraint is what keeps a
    threshold from being credited twice, even when two check-ins race.
    """
    __tablename__ = "loyalty_history"
    __table_args__ = (
        db.UniqueConstraint("user_id", "bonus_type", name="uq_loyalty_history_user_bonus"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    bonus_type = db.Column(db.String(64), nullable=False)  # e.g. session_4, session_8
    bonus_apples = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    user = db.relationship("User", backref=db.backref("loyalty_bonuses", lazy=True))

    def to_dict(self) -> dict:
        return {
            "bonus_type": self.bonus_type,
            "bonus_apples": self.bonus_apples,
            "created_at": to_utc_z(self.created_at),
        }
