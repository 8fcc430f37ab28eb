"""Helpers shared by the HTTP routers."""
from __future__ import annotations

from fastapi import HTTPException

from ..errors import SocialError
from ..services import OperationResult


def ensure_success(result: OperationResult) -> OperationResult:
    """Raise an ``HTTPException`` carrying the failure of ``result``."""

    if not result.success:
        raise HTTPException(status_code=result.status_code, detail=result.error)
    return result


def http_error(exc: SocialError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.message)


__all__ = ["ensure_success", "http_error"]
