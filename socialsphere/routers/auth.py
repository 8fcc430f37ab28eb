"""Authentication related API routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..config import get_settings
from ..database import get_session
from ..errors import SocialError
from ..schemas import AuthResponse, LoginRequest, PrincipalResponse, RegisterRequest
from ..services import (
    Principal,
    ServiceContainer,
    authenticate_account,
    create_access_token,
    get_current_principal,
    get_services,
    register_account,
)
from ..services.auth_service import record_login
from .common import http_error

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_response(principal: Principal) -> AuthResponse:
    return AuthResponse(
        access_token=create_access_token(principal.uid),
        user_id=principal.uid,
        display_name=principal.display_name,
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register_endpoint(
    payload: RegisterRequest,
    db: Session = Depends(get_session),
    services: ServiceContainer = Depends(get_services),
) -> AuthResponse:
    try:
        principal = register_account(
            db,
            services.store,
            email=payload.email,
            password=payload.password,
            first_name=payload.first_name,
            last_name=payload.last_name,
            dob=payload.dob,
            gender=payload.gender,
        )
    except SocialError as exc:
        raise http_error(exc) from exc
    return _auth_response(principal)


@router.post("/login", response_model=AuthResponse)
async def login_endpoint(
    payload: LoginRequest,
    db: Session = Depends(get_session),
    services: ServiceContainer = Depends(get_services),
) -> AuthResponse:
    try:
        principal = authenticate_account(db, payload.email, payload.password)
    except SocialError as exc:
        raise http_error(exc) from exc

    settings = get_settings()
    record_login(
        db,
        services.store,
        principal,
        attempts=settings.retry_attempts,
        delay=settings.retry_delay_seconds,
    )
    return _auth_response(principal)


@router.get("/me", response_model=PrincipalResponse)
async def me_endpoint(principal: Principal = Depends(get_current_principal)) -> PrincipalResponse:
    return PrincipalResponse(uid=principal.uid, email=principal.email, display_name=principal.display_name)


__all__ = ["router"]
