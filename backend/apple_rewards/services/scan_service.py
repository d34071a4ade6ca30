# Overview: Barcode classification and scan authorization.

"""
Barcode scans.

The first character of a barcode says what it identifies:

    1  student
    2  admin session check-in (credits the scanning admin)
    3  assistant

Admins may scan any kind; assistants may only scan students.
"""

from __future__ import annotations

from ..extensions import db
from ..models import User, Student, ROLE_ADMIN, ROLE_ASSISTANT
from ..validation import NotFoundError, PermissionDeniedError
from . import apple_service


KIND_STUDENT = "student"
KIND_ADMIN = "admin"
KIND_ASSISTANT = "assistant"

BARCODE_PREFIXES = {
    "1": KIND_STUDENT,
    "2": KIND_ADMIN,
    "3": KIND_ASSISTANT,
}

# Kinds each caller role is allowed to scan
SCANNABLE_KINDS = {
    ROLE_ADMIN: {KIND_STUDENT, KIND_ADMIN, KIND_ASSISTANT},
    ROLE_ASSISTANT: {KIND_STUDENT},
}

DENIED_MESSAGES = {
    ROLE_ADMIN: "Admins can scan their own attendance (2), student barcodes (1), or assistant barcodes (3)",
    ROLE_ASSISTANT: "Assistants can only scan student barcodes (starting with 1)",
}


def classify_barcode(barcode: str) -> str | None:
    """Kind of entity a barcode identifies, or None for an unknown prefix."""
    barcode = (barcode or "").strip()
    if not barcode:
        return None
    return BARCODE_PREFIXES.get(barcode[0])


def authorize_scan(role: str, kind: str | None) -> None:
    """Raise PermissionDeniedError unless role may scan a barcode of this kind."""
    allowed = SCANNABLE_KINDS.get(role)
    if allowed is None:
        raise PermissionDeniedError(f"Role {role!r} cannot scan barcodes")
    if kind not in allowed:
        raise PermissionDeniedError(DENIED_MESSAGES[role])


def scan(actor: User, barcode: str) -> dict:
    """
    Resolve a scanned barcode for actor.

    Lookups are read-only except the admin check-in, which records a
    session for actor.
    """
    barcode = barcode.strip()
    kind = classify_barcode(barcode)
    authorize_scan(actor.role, kind)

    if kind == KIND_ADMIN:
        change = apple_service.check_in(actor)
        body = change.to_dict()
        body["type"] = KIND_ADMIN
        return body

    if kind == KIND_STUDENT:
        student = db.session.query(Student).filter_by(barcode=barcode).first()
        if not student:
            raise NotFoundError("Student not found")
        return {
            "success": True,
            "type": KIND_STUDENT,
            "name": student.name,
            "apples": student.apples,
            "studentId": student.id,
            "message": f"Student found: {student.name}",
        }

    assistant = db.session.query(User).filter_by(barcode=barcode, role=ROLE_ASSISTANT).first()
    if not assistant:
        raise NotFoundError("Assistant not found")
    return {
        "success": True,
        "type": KIND_ASSISTANT,
        "name": assistant.name,
        "apples": assistant.apples,
        "sessions": assistant.sessions_attended,
        "assistantId": assistant.id,
        "message": f"Assistant found: {assistant.name}",
    }
