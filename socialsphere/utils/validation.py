"""Input validation helpers for sign-up forms and user-supplied text."""
from __future__ import annotations

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ..errors import ValidationError

_EMAIL_ADAPTER = TypeAdapter(EmailStr)

MIN_PASSWORD_LENGTH = 6


def validate_email(email: str | None) -> bool:
    """Apply the same address rules as the ``EmailStr`` request schemas."""

    if not email:
        return False
    try:
        _EMAIL_ADAPTER.validate_python(email.strip())
    except PydanticValidationError:
        return False
    return True


def validate_password(password: str | None) -> list[str]:
    """Return the list of problems with ``password`` (empty when acceptable)."""

    if not password or len(password) < MIN_PASSWORD_LENGTH:
        return [f"Password must be at least {MIN_PASSWORD_LENGTH} characters"]
    return []


def validate_signup(email: str | None, password: str | None) -> dict[str, str]:
    errors: dict[str, str] = {}
    if not email:
        errors["email"] = "Email is required"
    elif not validate_email(email):
        errors["email"] = "Invalid email format"

    if not password:
        errors["password"] = "Password is required"
    else:
        problems = validate_password(password)
        if problems:
            errors["password"] = ", ".join(problems)
    return errors


def require_text(value: str | None, *, label: str = "Text") -> str:
    """Return ``value`` stripped, raising :class:`ValidationError` when blank."""

    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{label} cannot be empty")
    return text


__all__ = [
    "MIN_PASSWORD_LENGTH",
    "validate_email",
    "validate_password",
    "validate_signup",
    "require_text",
]
