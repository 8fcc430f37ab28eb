"""Convenience exports for service layer."""
from .auth_service import (
    IdentityProvider,
    Principal,
    authenticate_account,
    create_access_token,
    decode_access_token,
    get_current_principal,
    register_account,
)
from .container import ServiceContainer, SocialSession, build_services, get_services
from .engagement import EngagementService
from .engagement_cache import EngagementStateCache
from .feed import FeedService
from .realtime import FeedStreamManager
from .results import OperationResult, read_operation, service_operation
from .social_graph import SocialGraphService, require_principal

__all__ = [
    "IdentityProvider",
    "Principal",
    "authenticate_account",
    "create_access_token",
    "decode_access_token",
    "get_current_principal",
    "register_account",
    "ServiceContainer",
    "SocialSession",
    "build_services",
    "get_services",
    "EngagementService",
    "EngagementStateCache",
    "FeedService",
    "FeedStreamManager",
    "OperationResult",
    "read_operation",
    "service_operation",
    "SocialGraphService",
    "require_principal",
]
