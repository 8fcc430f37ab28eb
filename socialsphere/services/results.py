"""Uniform result shape returned across the service boundary."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import wraps
from typing import Any, Callable, ParamSpec, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from ..errors import RemoteUnavailable, SocialError

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


@dataclass(slots=True)
class OperationResult:
    success: bool
    error: str | None = None
    code: str | None = None
    status_code: int | None = None
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, **data: Any) -> "OperationResult":
        return cls(success=True, data=data)

    @classmethod
    def failed(cls, exc: SocialError) -> "OperationResult":
        return cls(success=False, error=exc.message, code=exc.code, status_code=exc.status_code)

    def __bool__(self) -> bool:
        return self.success

    def __getitem__(self, key: str) -> Any:
        return self.data[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"success": self.success}
        if self.error is not None:
            payload["error"] = self.error
        payload.update(self.data)
        return payload


def service_operation(action: str) -> Callable[[Callable[P, OperationResult]], Callable[P, OperationResult]]:
    """Convert domain and store failures raised by a mutation into a failed result.

    Completed sub-steps are not rolled back; the failure is only reported.
    """

    def decorator(func: Callable[P, OperationResult]) -> Callable[P, OperationResult]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> OperationResult:
            try:
                return func(*args, **kwargs)
            except SocialError as exc:
                logger.warning("Error %s: %s", action, exc.message)
                return OperationResult.failed(exc)
            except SQLAlchemyError:
                logger.exception("Storage failure while %s", action)
                return OperationResult.failed(RemoteUnavailable())

        return wrapper

    return decorator


def read_operation(action: str, default: Callable[[], T]) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Log failures of a read and fall back to ``default()``."""

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            try:
                return func(*args, **kwargs)
            except SocialError as exc:
                logger.warning("Error %s: %s", action, exc.message)
                return default()

        return wrapper

    return decorator


__all__ = ["OperationResult", "service_operation", "read_operation"]
