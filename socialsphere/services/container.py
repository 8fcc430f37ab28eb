"""Explicit wiring of the store and services for a session or an app instance."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Request
from sqlalchemy.orm import Session

from ..config import Settings, get_settings
from ..store import DocumentStore
from .auth_service import IdentityProvider, Principal
from .engagement import EngagementService
from .engagement_cache import EngagementStateCache
from .feed import FeedService
from .social_graph import SocialGraphService

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ServiceContainer:
    store: DocumentStore
    graph: SocialGraphService
    engagement: EngagementService
    feed: FeedService

    def close(self) -> None:
        """Cancel live queries and drop cached engagement state."""

        self.engagement.close()
        self.feed.stop_listening()


def build_services(store: DocumentStore, settings: Settings | None = None) -> ServiceContainer:
    settings = settings or get_settings()
    cache = EngagementStateCache(settings.engagement_cache_size)
    return ServiceContainer(
        store=store,
        graph=SocialGraphService(store, suggestions_limit=settings.friend_suggestions_limit),
        engagement=EngagementService(store, cache=cache),
        feed=FeedService(store, cascade_delete=settings.cascade_post_delete, engagement_cache=cache),
    )


def get_services(request: Request) -> ServiceContainer:
    """FastAPI dependency returning the container built at startup."""

    return request.app.state.services


class SocialSession:
    """One signed-in client: an identity provider plus its own services.

    Signing out or ending the session drops the engagement cache and cancels
    every live query the session opened.
    """

    def __init__(self, services: ServiceContainer, identity: IdentityProvider) -> None:
        self.services = services
        self.identity = identity
        self._unsubscribe = identity.on_auth_change(self._handle_auth_change)

    @classmethod
    def open(
        cls,
        session_factory: Callable[[], Session],
        store: DocumentStore,
        settings: Settings | None = None,
    ) -> "SocialSession":
        settings = settings or get_settings()
        identity = IdentityProvider(
            session_factory,
            store,
            retry_attempts=settings.retry_attempts,
            retry_delay=settings.retry_delay_seconds,
        )
        return cls(build_services(store, settings), identity)

    @property
    def user_id(self) -> str | None:
        principal = self.identity.current_principal()
        return principal.uid if principal else None

    def _handle_auth_change(self, principal: Optional[Principal]) -> None:
        if principal is None:
            logger.debug("Session signed out; releasing engagement state")
            self.services.close()

    def end(self) -> None:
        self._unsubscribe()
        self.services.close()

    def __enter__(self) -> "SocialSession":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.end()


__all__ = ["ServiceContainer", "SocialSession", "build_services", "get_services"]
