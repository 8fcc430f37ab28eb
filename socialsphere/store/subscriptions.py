"""In-process fanout of live query results to subscribers."""
from __future__ import annotations

import logging
import threading
from typing import Callable, Sequence

from ..errors import SocialError
from .base import Document, Filter, OrderBy, SnapshotCallback, Subscription

logger = logging.getLogger(__name__)

SnapshotLoader = Callable[[str, Sequence[Filter], OrderBy | None], list[Document]]


class LiveQuery(Subscription):
    """A registered standing query; redelivers the full result set on change."""

    def __init__(
        self,
        hub: "SubscriptionHub",
        collection: str,
        callback: SnapshotCallback,
        filters: Sequence[Filter],
        order_by: OrderBy | None,
    ) -> None:
        self._hub = hub
        self.collection = collection
        self.filters = tuple(filters)
        self.order_by = order_by
        self._callback: SnapshotCallback | None = callback

    @property
    def active(self) -> bool:
        return self._callback is not None

    def cancel(self) -> None:
        if self._callback is None:
            return
        self._callback = None
        self._hub.discard(self)

    def deliver(self, documents: list[Document]) -> None:
        callback = self._callback
        if callback is None:
            return
        try:
            callback(documents)
        except Exception:
            logger.exception("Live query callback failed for collection %s", self.collection)


class SubscriptionHub:
    """Tracks live queries per collection and re-runs them after writes."""

    def __init__(self, loader: SnapshotLoader) -> None:
        self._loader = loader
        self._queries: dict[str, list[LiveQuery]] = {}
        self._lock = threading.RLock()

    def register(
        self,
        collection: str,
        callback: SnapshotCallback,
        filters: Sequence[Filter] = (),
        order_by: OrderBy | None = None,
    ) -> LiveQuery:
        query = LiveQuery(self, collection, callback, filters, order_by)
        with self._lock:
            self._queries.setdefault(collection, []).append(query)
        self._refresh(query)
        return query

    def discard(self, query: LiveQuery) -> None:
        with self._lock:
            group = self._queries.get(query.collection)
            if not group:
                return
            if query in group:
                group.remove(query)
            if not group:
                self._queries.pop(query.collection, None)

    def active_count(self, collection: str | None = None) -> int:
        with self._lock:
            if collection is not None:
                return len(self._queries.get(collection, ()))
            return sum(len(group) for group in self._queries.values())

    def notify(self, collection: str) -> None:
        with self._lock:
            targets = list(self._queries.get(collection, ()))
        for query in targets:
            if query.active:
                self._refresh(query)

    def _refresh(self, query: LiveQuery) -> None:
        try:
            documents = self._loader(query.collection, query.filters, query.order_by)
        except SocialError:
            logger.exception("Failed to refresh live query on %s", query.collection)
            return
        query.deliver(documents)


__all__ = ["LiveQuery", "SubscriptionHub"]
