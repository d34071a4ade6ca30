# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

WHY: Every apple movement must be attributable to a staff member. Uses
bcrypt for password hashing and validates password strength.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters required
- Must contain uppercase, lowercase, digit, and special char
- Session tokens managed separately (see session_service.py)
"""

import bcrypt
import re
from ..extensions import db
from ..models import User, Student, USER_ROLES
from apple_rewards.time_utils import utcnow


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Raises PasswordValidationError if requirements not met.
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """Validate strength, then hash with bcrypt (cost factor 12)."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    WHY timing-safe: bcrypt.checkpw() prevents timing attacks automatically.
    A malformed stored hash counts as a mismatch.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def _barcode_taken(barcode: str) -> bool:
    if db.session.query(User.id).filter_by(barcode=barcode).first():
        return True
    return db.session.query(Student.id).filter_by(barcode=barcode).first() is not None


def create_user(
    name: str,
    email: str,
    password: str,
    role: str,
    barcode: str,
    profile_picture_url: str | None = None,
) -> User:
    """
    Create a staff user with a bcrypt password hash.

    Raises:
        ValueError: unknown role, duplicate email or duplicate barcode
        PasswordValidationError: password doesn't meet requirements
    """
    if role not in USER_ROLES:
        raise ValueError(f"Role must be one of: {', '.join(USER_ROLES)}")

    if db.session.query(User.id).filter_by(email=email).first():
        raise ValueError("Email already exists")

    if _barcode_taken(barcode):
        raise ValueError("Barcode already in use")

    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=role,
        barcode=barcode,
        apples=0,
        sessions_attended=0,
        profile_picture_url=profile_picture_url,
    )

    db.session.add(user)
    db.session.commit()
    return user


def create_student(name: str, barcode: str) -> Student:
    """Register a student; barcodes are unique across students and staff."""
    if _barcode_taken(barcode):
        raise ValueError("Barcode already in use")

    student = Student(name=name, barcode=barcode, apples=0)
    db.session.add(student)
    db.session.commit()
    return student


def authenticate(email: str, password: str) -> User | None:
    """
    Authenticate a user by email and password.

    Returns User if credentials valid, None otherwise.
    Updates last_login_at timestamp on successful authentication.
    """
    user = db.session.query(User).filter(
        User.email == email,
        User.is_active.is_(True),
    ).first()

    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None
