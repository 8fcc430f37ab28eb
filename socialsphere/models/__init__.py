"""Convenience exports for ORM models."""
from .account import Account
from .document import StoredDocument

__all__ = [
    "Account",
    "StoredDocument",
]
