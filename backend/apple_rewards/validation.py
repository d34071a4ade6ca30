from __future__ import annotations

import re
from typing import Any


class ValidationError(ValueError):
    """400-level input problem."""


class NotFoundError(LookupError):
    """404-level: the addressed user or student does not exist."""


class PermissionDeniedError(Exception):
    """403-level: the caller's role may not perform the action."""


def require_fields(data: dict, *names: str) -> None:
    """Reject the body if any named field is missing, null or empty."""
    missing = [name for name in names if data.get(name) in (None, "")]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


# Signed 64-bit, the range of an INTEGER / BIGINT column
INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

_PLAIN_INT_RE = re.compile(r"-?[0-9]+")


def parse_int(value: Any, field: str) -> int:
    """
    Strict integer parsing for JSON input.

    Accepts ints and plain ASCII digit strings (optional leading minus)
    within the signed 64-bit range. Rejects bools, floats, decimals,
    scientific notation and digit separators.
    """
    if value is None:
        raise ValidationError(f"{field} is required")
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"{field} must be an integer, not a decimal")
        parsed = int(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if not _PLAIN_INT_RE.fullmatch(stripped):
            raise ValidationError(f"{field} must be a plain integer")
        parsed = int(stripped)
    else:
        raise ValidationError(f"{field} must be an integer")

    if not INT64_MIN <= parsed <= INT64_MAX:
        raise ValidationError(f"{field} is out of range")
    return parsed


def parse_apples_delta(data: dict) -> int:
    """The signed apple amount of an add-apples request."""
    if data.get("apples") is None:
        raise ValidationError("Invalid apple amount")
    try:
        return parse_int(data["apples"], "apples")
    except ValidationError:
        raise ValidationError("Invalid apple amount")


def parse_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)
