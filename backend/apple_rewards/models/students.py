from __future__ import annotations

from ..extensions import db
from apple_rewards.time_utils import to_utc_z


class Student(db.Model):
    """Students only hold an apple balance; they never log in or attend sessions."""
    __tablename__ = "students"
    __table_args__ = (
        db.Index("ix_students_apples", "apples"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, index=True)
    barcode = db.Column(db.String(32), nullable=False, unique=True, index=True)
    apples = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Student id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "barcode": self.barcode,
            "apples": self.apples,
            "created_at": to_utc_z(self.created_at),
        }
