"""Retry helper for best-effort calls against the document store."""
from __future__ import annotations

import logging
import time
from typing import Callable, TypeVar

from ..errors import RemoteUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")


def retry_call(
    func: Callable[[], T],
    *,
    attempts: int = 3,
    delay: float = 1.0,
    backoff: float = 2.0,
    retry_on: tuple[type[BaseException], ...] = (RemoteUnavailable,),
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call ``func`` until it succeeds, sleeping ``delay * backoff**n`` between tries.

    The last failure is re-raised once ``attempts`` calls have failed.
    """

    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    wait = delay
    for attempt in range(1, attempts + 1):
        try:
            return func()
        except retry_on as exc:
            if attempt == attempts:
                raise
            logger.warning("Attempt %d/%d failed (%s); retrying in %.2fs", attempt, attempts, exc, wait)
            sleep(wait)
            wait *= backoff
    raise AssertionError("unreachable")  # pragma: no cover


__all__ = ["retry_call"]
