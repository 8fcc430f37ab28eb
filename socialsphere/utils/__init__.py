"""Shared helpers."""
from .retry import retry_call
from .validation import require_text, validate_email, validate_password, validate_signup

__all__ = ["retry_call", "require_text", "validate_email", "validate_password", "validate_signup"]
