"""Per-session memo of like/save state keyed by (kind, user, post)."""
from __future__ import annotations

from collections import OrderedDict

LIKED = "liked"
SAVED = "saved"

CacheKey = tuple[str, str, str]


class EngagementStateCache:
    """LRU-bounded map of boolean engagement flags.

    Entries are overwritten by the engagement service as soon as a mutation on
    the same key completes, and dropped when its outcome is unknown.
    """

    def __init__(self, max_entries: int = 10_000) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be positive")
        self._max_entries = max_entries
        self._entries: OrderedDict[CacheKey, bool] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, kind: str, user_id: str, post_id: str) -> bool | None:
        key = (kind, user_id, post_id)
        value = self._entries.get(key)
        if value is not None:
            self._entries.move_to_end(key)
        return value

    def set(self, kind: str, user_id: str, post_id: str, value: bool) -> None:
        key = (kind, user_id, post_id)
        self._entries[key] = value
        self._entries.move_to_end(key)
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)

    def invalidate(self, kind: str, user_id: str, post_id: str) -> None:
        self._entries.pop((kind, user_id, post_id), None)

    def forget_post(self, post_id: str) -> None:
        for key in [key for key in self._entries if key[2] == post_id]:
            del self._entries[key]

    def clear(self, user_id: str | None = None) -> None:
        if user_id is None:
            self._entries.clear()
            return
        for key in [key for key in self._entries if key[1] == user_id]:
            del self._entries[key]


__all__ = ["LIKED", "SAVED", "EngagementStateCache"]
