# Overview: Service-layer operations for auth; password hashing and credential checks.

"""
Email/password authentication for the owner portal.

Passwords are hashed with bcrypt. Portal access (who may use the portal
once signed in) is decided separately by access_service.
"""

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import User
from ..models.auth import USER_ROLES, ROLE_CASHIER
from ..time_utils import utcnow
from ..validation import ValidationError, ConflictError, require_text, optional_text, validate_email


MIN_PASSWORD_LENGTH = 6


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Minimum length only; the POS apps share these credentials and enforce
    the same rule.
    """
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )


def hash_password(password: str) -> str:
    """Validate then hash with bcrypt (cost factor BCRYPT_ROUNDS, default 12)."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=current_app.config.get("BCRYPT_ROUNDS", 12))
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw() is timing-safe. Malformed hashes verify as False.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def validate_role(role: str | None) -> str:
    role = (role or ROLE_CASHIER).strip()
    if role not in USER_ROLES:
        raise ValidationError(f"Unknown role: {role}")
    return role


def build_user(
    *,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    phone: str | None = None,
    role: str | None = None,
    is_active: bool = True,
) -> User:
    """
    Validate and construct (but do not commit) a new user.

    Callers commit together with whatever else belongs to the same save,
    e.g. the initial store assignments.
    """
    email = validate_email(normalize_email(email), required=True)
    first_name = require_text(first_name, "Please fill in all required fields")
    last_name = require_text(last_name, "Please fill in all required fields")
    role = validate_role(role)

    existing = db.session.query(User).filter_by(email=email).first()
    if existing:
        raise ConflictError("A user with this email already exists")

    return User(
        email=email,
        password_hash=hash_password((password or "").strip()),
        first_name=first_name,
        last_name=last_name,
        phone=optional_text(phone),
        role=role,
        is_active=bool(is_active),
    )


def create_user(**fields) -> User:
    user = build_user(**fields)
    db.session.add(user)
    db.session.commit()
    return user


def set_password(user: User, password: str) -> None:
    """Replace a user's password hash; caller commits."""
    user.password_hash = hash_password((password or "").strip())


def authenticate(email: str, password: str) -> User | None:
    """
    Check email/password.

    Returns the User on success (and stamps last_login_at), None otherwise.
    Inactive accounts never authenticate.
    """
    user = db.session.query(User).filter(
        User.email == normalize_email(email),
        User.is_active.is_(True),
    ).first()

    if not user:
        return None

    if verify_password((password or "").strip(), user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None
