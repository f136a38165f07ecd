# Overview: Input normalization shared by the portal's form-backed services.

from __future__ import annotations

import re
from typing import Any


# Maximum price: 9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate email)."""


def clean_text(value: Any) -> str:
    """Strip a form value; None becomes ''."""
    if value is None:
        return ""
    return str(value).strip()


def optional_text(value: Any) -> str | None:
    """Blank form values are stored as NULL."""
    cleaned = clean_text(value)
    return cleaned or None


def require_text(value: Any, message: str) -> str:
    cleaned = clean_text(value)
    if not cleaned:
        raise ValidationError(message)
    return cleaned


def validate_email(value: Any, *, required: bool = False) -> str | None:
    email = clean_text(value)
    if not email:
        if required:
            raise ValidationError("Email is required")
        return None
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Please enter a valid email address")
    return email


def parse_cents(value: Any, field: str, *, required: bool = False) -> int:
    """
    Parse a money amount in cents.

    Integers (or digit strings) only; scientific notation and decimals are
    rejected so a dollars/cents mix-up fails loudly.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValidationError(f"{field} is required")
        return 0

    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    if isinstance(value, str):
        stripped = value.strip()
        if "e" in stripped.lower() or "." in stripped:
            raise ValidationError(f"{field} must be a plain integer")
        try:
            value = int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    if not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer")

    if value < 0:
        raise ValidationError(f"{field} cannot be negative")
    if value > MAX_PRICE_CENTS:
        raise ValidationError(f"{field} exceeds maximum of {MAX_PRICE_CENTS}")
    return value


def parse_quantity(value: Any) -> float:
    """Stock quantities fall back to 0 when blank or unparseable."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def parse_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def parse_id_list(value: Any, field: str = "store_ids") -> list[int]:
    """Order-preserving, de-duplicated list of integer ids."""
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise ValidationError(f"{field} must be a list")

    ids: list[int] = []
    for raw in value:
        if isinstance(raw, bool):
            raise ValidationError(f"{field} must contain integer ids")
        try:
            item = int(raw)
        except (TypeError, ValueError):
            raise ValidationError(f"{field} must contain integer ids")
        if item not in ids:
            ids.append(item)
    return ids
