"""Friend management API routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from ..schemas.friends import (
    FriendRequestPayload,
    FriendRequestResponse,
    FriendshipStatusResponse,
    FriendsOverviewResponse,
    UserListResponse,
)
from ..services import Principal, ServiceContainer, get_current_principal, get_services
from .common import ensure_success

router = APIRouter(prefix="/friends", tags=["friends"])


@router.get("/", response_model=UserListResponse)
async def list_friends_endpoint(
    principal: Principal = Depends(get_current_principal),
    services: ServiceContainer = Depends(get_services),
) -> UserListResponse:
    return UserListResponse(items=services.graph.get_friends_list(principal.uid))


@router.get("/suggestions", response_model=UserListResponse)
async def suggestions_endpoint(
    limit: int | None = Query(default=None, ge=1, le=100),
    principal: Principal = Depends(get_current_principal),
    services: ServiceContainer = Depends(get_services),
) -> UserListResponse:
    return UserListResponse(items=services.graph.get_friend_suggestions(principal.uid, limit))


@router.get("/status/{user_id}", response_model=FriendshipStatusResponse)
async def friendship_status_endpoint(
    user_id: str,
    principal: Principal = Depends(get_current_principal),
    services: ServiceContainer = Depends(get_services),
) -> FriendshipStatusResponse:
    return FriendshipStatusResponse(
        user_id=user_id,
        status=services.graph.get_friendship_status(principal.uid, user_id),
    )


@router.get("/requests", response_model=FriendsOverviewResponse)
async def list_requests_endpoint(
    principal: Principal = Depends(get_current_principal),
    services: ServiceContainer = Depends(get_services),
) -> FriendsOverviewResponse:
    graph = services.graph
    return FriendsOverviewResponse(
        friends=graph.get_friends_list(principal.uid),
        incoming_requests=graph.get_pending_requests(principal.uid),
        outgoing_requests=graph.get_sent_requests(principal.uid),
    )


@router.post("/requests", response_model=FriendRequestResponse, status_code=status.HTTP_201_CREATED)
async def send_request_endpoint(
    payload: FriendRequestPayload,
    principal: Principal = Depends(get_current_principal),
    services: ServiceContainer = Depends(get_services),
) -> FriendRequestResponse:
    result = ensure_success(services.graph.send_friend_request(principal.uid, payload.receiver_id))
    return FriendRequestResponse(request_id=result["requestId"])


@router.post("/requests/{sender_id}/accept", response_model=FriendRequestResponse)
async def accept_request_endpoint(
    sender_id: str,
    principal: Principal = Depends(get_current_principal),
    services: ServiceContainer = Depends(get_services),
) -> FriendRequestResponse:
    result = ensure_success(services.graph.accept_friend_request(principal.uid, sender_id))
    return FriendRequestResponse(request_id=result["requestId"])


@router.post("/requests/{sender_id}/reject", response_model=FriendRequestResponse)
async def reject_request_endpoint(
    sender_id: str,
    principal: Principal = Depends(get_current_principal),
    services: ServiceContainer = Depends(get_services),
) -> FriendRequestResponse:
    result = ensure_success(services.graph.reject_friend_request(principal.uid, sender_id))
    return FriendRequestResponse(request_id=result["requestId"])


@router.delete("/{friend_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_friend_endpoint(
    friend_id: str,
    principal: Principal = Depends(get_current_principal),
    services: ServiceContainer = Depends(get_services),
) -> None:
    ensure_success(services.graph.remove_friend(principal.uid, friend_id))


__all__ = ["router"]
