"""Saved post listings for the signed-in user."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from ..schemas import SavedCountResponse, SavedPostsResponse
from ..services import Principal, ServiceContainer, get_current_principal, get_services

router = APIRouter(prefix="/saved", tags=["saved"])


@router.get("/", response_model=SavedPostsResponse)
async def list_saved_endpoint(
    principal: Principal = Depends(get_current_principal),
    services: ServiceContainer = Depends(get_services),
) -> SavedPostsResponse:
    return SavedPostsResponse(items=services.engagement.get_saved_posts(principal.uid))


@router.get("/count", response_model=SavedCountResponse)
async def saved_count_endpoint(
    principal: Principal = Depends(get_current_principal),
    services: ServiceContainer = Depends(get_services),
) -> SavedCountResponse:
    return SavedCountResponse(count=services.engagement.get_saved_posts_count(principal.uid))


__all__ = ["router"]
