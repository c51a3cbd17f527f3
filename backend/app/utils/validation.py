"""
Validation utilities for input validation and error handling.
"""
import re
from typing import Any, Iterable

from fastapi import HTTPException

EMPLOYMENT_TYPES = ("full-time", "part-time", "contract", "freelance")
WALLET_TYPES = ("metamask", "phantom")
POST_TYPES = ("text", "job", "image")
APPLICATION_STATUSES = ("pending", "reviewed", "accepted", "rejected")
CONNECTION_DECISIONS = ("accepted", "rejected")
PAYMENT_STATUSES = ("pending", "confirmed", "verified", "failed")
PAYMENT_PURPOSES = ("job_posting", "premium_feature")
CURRENCIES = ("ETH", "MATIC", "SOL")
NETWORKS = ("ethereum", "polygon", "solana")


def validate_email(email: str) -> str:
    """Validate email format."""
    if not email or not isinstance(email, str):
        raise HTTPException(status_code=400, detail="Email is required")

    email = email.strip().lower()
    if len(email) > 255:
        raise HTTPException(status_code=400, detail="Email too long (max 255 characters)")

    # Basic email regex
    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    if not re.match(pattern, email):
        raise HTTPException(status_code=400, detail="Invalid email format")

    return email


def validate_password(password: str) -> None:
    """Validate password strength."""
    if not password or not isinstance(password, str):
        raise HTTPException(status_code=400, detail="Password is required")

    if len(password) < 6:
        raise HTTPException(status_code=400, detail="Password must be at least 6 characters")

    if len(password) > 128:
        raise HTTPException(status_code=400, detail="Password too long (max 128 characters)")


def validate_username(username: str) -> str:
    return validate_string_field(
        username,
        "Username",
        min_length=3,
        max_length=50,
        pattern=r"^[A-Za-z0-9_.-]+$",
    )


def validate_string_field(
    value: Any,
    field_name: str,
    min_length: int = 1,
    max_length: int = 1000,
    required: bool = True,
    pattern: str | None = None,
) -> str | None:
    """Validate a string field with common rules."""
    if value is None:
        if required:
            raise HTTPException(status_code=400, detail=f"{field_name} is required")
        return None

    if not isinstance(value, str):
        raise HTTPException(status_code=400, detail=f"{field_name} must be a string")

    value = value.strip()

    if required and not value:
        raise HTTPException(status_code=400, detail=f"{field_name} cannot be empty")

    if not required and not value:
        return None

    if len(value) < min_length:
        raise HTTPException(
            status_code=400,
            detail=f"{field_name} must be at least {min_length} characters"
        )

    if len(value) > max_length:
        raise HTTPException(
            status_code=400,
            detail=f"{field_name} must not exceed {max_length} characters"
        )

    if pattern and not re.match(pattern, value):
        raise HTTPException(status_code=400, detail=f"{field_name} format is invalid")

    return value


def validate_integer_field(
    value: Any,
    field_name: str,
    min_value: int | None = None,
    max_value: int | None = None,
    required: bool = True,
) -> int | None:
    """Validate an integer field."""
    if value is None:
        if required:
            raise HTTPException(status_code=400, detail=f"{field_name} is required")
        return None

    if isinstance(value, bool) or not isinstance(value, int):
        try:
            value = int(value)
        except (ValueError, TypeError):
            raise HTTPException(status_code=400, detail=f"{field_name} must be a valid integer")

    if min_value is not None and value < min_value:
        raise HTTPException(
            status_code=400,
            detail=f"{field_name} must be at least {min_value}"
        )

    if max_value is not None and value > max_value:
        raise HTTPException(
            status_code=400,
            detail=f"{field_name} must not exceed {max_value}"
        )

    return value


def validate_choice(
    value: str | None,
    field_name: str,
    choices: Iterable[str],
    required: bool = False,
    case_sensitive: bool = False,
) -> str | None:
    """Validate an enumerated string value (returns the canonical spelling)."""
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise HTTPException(status_code=400, detail=f"{field_name} is required")
        return None

    if not isinstance(value, str):
        raise HTTPException(status_code=400, detail=f"{field_name} must be a string")

    choices = tuple(choices)
    candidate = value.strip()
    for choice in choices:
        if candidate == choice or (not case_sensitive and candidate.lower() == choice.lower()):
            return choice

    raise HTTPException(
        status_code=400,
        detail=f"Invalid {field_name}. Must be one of: {', '.join(choices)}"
    )


def clean_string_list(
    values: Any,
    field_name: str,
    max_items: int = 100,
    max_length: int = 200,
) -> list[str]:
    """Normalize a list of short strings: strip, drop blanks, dedupe case-insensitively."""
    if values is None:
        return []
    if isinstance(values, str):
        values = [v for v in values.split(",")]
    if not isinstance(values, (list, tuple)):
        raise HTTPException(status_code=400, detail=f"{field_name} must be a list")

    cleaned: list[str] = []
    seen: set[str] = set()
    for raw in values:
        if not isinstance(raw, str):
            raise HTTPException(status_code=400, detail=f"{field_name} must contain only strings")
        item = raw.strip()
        if not item:
            continue
        if len(item) > max_length:
            raise HTTPException(
                status_code=400,
                detail=f"{field_name} entries must not exceed {max_length} characters"
            )
        key = item.lower()
        if key in seen:
            continue
        seen.add(key)
        cleaned.append(item)

    if len(cleaned) > max_items:
        raise HTTPException(
            status_code=400,
            detail=f"{field_name} must not contain more than {max_items} items"
        )
    return cleaned
