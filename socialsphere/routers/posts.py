"""Post, like, comment and save API routes backed by the document store."""
from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status

from ..schemas import (
    CommentCreate,
    CommentCreatedResponse,
    CommentDeleteResponse,
    CommentListResponse,
    CommentResponse,
    LikeListResponse,
    LikeToggleResponse,
    PostCreate,
    PostDeleteResponse,
    PostFeedResponse,
    PostResponse,
    SaveToggleResponse,
)
from ..services import Principal, ServiceContainer, get_current_principal, get_services
from .common import ensure_success

router = APIRouter(prefix="/posts", tags=["posts"])

logger = logging.getLogger(__name__)


def _serialize_posts(
    posts: list[dict[str, Any]],
    viewer_id: str,
    services: ServiceContainer,
) -> list[PostResponse]:
    post_ids = [post["id"] for post in posts]
    liked = services.engagement.load_user_likes_for_posts(viewer_id, post_ids)
    saved = services.engagement.load_saved_status_for_posts(viewer_id, post_ids)
    return [
        PostResponse(
            **post,
            viewer_has_liked=liked.get(post["id"], False),
            viewer_has_saved=saved.get(post["id"], False),
        )
        for post in posts
    ]


@router.get("/", response_model=PostFeedResponse)
async def list_posts_endpoint(
    principal: Principal = Depends(get_current_principal),
    services: ServiceContainer = Depends(get_services),
) -> PostFeedResponse:
    posts = services.feed.get_all_posts()
    return PostFeedResponse(items=_serialize_posts(posts, principal.uid, services))


@router.post("/", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post_endpoint(
    payload: PostCreate,
    principal: Principal = Depends(get_current_principal),
    services: ServiceContainer = Depends(get_services),
) -> PostResponse:
    result = ensure_success(services.feed.create_post(principal.uid, payload.text))
    logger.info("Post %s created by %s", result["postId"], principal.uid)
    return PostResponse(**result["post"])


@router.get("/by-user/{user_id}", response_model=PostFeedResponse)
async def posts_by_user_endpoint(
    user_id: str,
    principal: Principal = Depends(get_current_principal),
    services: ServiceContainer = Depends(get_services),
) -> PostFeedResponse:
    posts = services.feed.get_user_posts(user_id)
    return PostFeedResponse(items=_serialize_posts(posts, principal.uid, services))


@router.get("/{post_id}", response_model=PostResponse)
async def get_post_endpoint(
    post_id: str,
    principal: Principal = Depends(get_current_principal),
    services: ServiceContainer = Depends(get_services),
) -> PostResponse:
    post = services.feed.get_post(post_id)
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return _serialize_posts([post], principal.uid, services)[0]


@router.delete("/{post_id}", response_model=PostDeleteResponse)
async def delete_post_endpoint(
    post_id: str,
    principal: Principal = Depends(get_current_principal),
    services: ServiceContainer = Depends(get_services),
) -> PostDeleteResponse:
    result = ensure_success(services.feed.delete_post(principal.uid, post_id))
    return PostDeleteResponse(post_id=post_id, removed_records=result.get("removedRecords", 0))


@router.post("/{post_id}/like", response_model=LikeToggleResponse)
async def toggle_like_endpoint(
    post_id: str,
    principal: Principal = Depends(get_current_principal),
    services: ServiceContainer = Depends(get_services),
) -> LikeToggleResponse:
    result = ensure_success(services.engagement.toggle_like(principal.uid, post_id))
    return LikeToggleResponse(post_id=post_id, liked=result["liked"], likes_count=result["likesCount"])


@router.get("/{post_id}/likes", response_model=LikeListResponse)
async def list_likes_endpoint(
    post_id: str,
    principal: Principal = Depends(get_current_principal),
    services: ServiceContainer = Depends(get_services),
) -> LikeListResponse:
    likes = services.engagement.get_post_likes(post_id)
    return LikeListResponse(post_id=post_id, likes_count=len(likes), items=likes)


@router.get("/{post_id}/comments", response_model=CommentListResponse)
async def list_comments_endpoint(
    post_id: str,
    principal: Principal = Depends(get_current_principal),
    services: ServiceContainer = Depends(get_services),
) -> CommentListResponse:
    comments = services.engagement.get_post_comments(post_id)
    return CommentListResponse(
        post_id=post_id,
        comments_count=len(comments),
        items=[CommentResponse(**comment) for comment in comments],
    )


@router.post("/{post_id}/comments", response_model=CommentCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_comment_endpoint(
    post_id: str,
    payload: CommentCreate,
    principal: Principal = Depends(get_current_principal),
    services: ServiceContainer = Depends(get_services),
) -> CommentCreatedResponse:
    result = ensure_success(services.engagement.add_comment(principal.uid, post_id, payload.text))
    return CommentCreatedResponse(
        comment=CommentResponse(**result["comment"]),
        comments_count=result["commentsCount"],
    )


@router.delete("/comments/{comment_id}", response_model=CommentDeleteResponse)
async def delete_comment_endpoint(
    comment_id: str,
    principal: Principal = Depends(get_current_principal),
    services: ServiceContainer = Depends(get_services),
) -> CommentDeleteResponse:
    result = ensure_success(services.engagement.delete_comment(principal.uid, comment_id))
    return CommentDeleteResponse(
        comment_id=comment_id,
        post_id=result.get("postId"),
        comments_count=result["commentsCount"],
    )


@router.post("/{post_id}/save", response_model=SaveToggleResponse)
async def toggle_save_endpoint(
    post_id: str,
    principal: Principal = Depends(get_current_principal),
    services: ServiceContainer = Depends(get_services),
) -> SaveToggleResponse:
    result = ensure_success(services.engagement.toggle_save(principal.uid, post_id))
    return SaveToggleResponse(post_id=post_id, saved=result["saved"])


__all__ = ["router"]
