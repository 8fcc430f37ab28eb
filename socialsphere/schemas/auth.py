"""Pydantic schemas for authentication endpoints."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class RegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    first_name: str = Field(..., min_length=1, max_length=64, alias="firstName")
    last_name: str = Field(..., min_length=1, max_length=64, alias="lastName")
    dob: str | None = None
    gender: str | None = Field(default=None, max_length=32)


class LoginRequest(BaseModel):
    email: str
    password: str


class AuthResponse(BaseModel):
    access_token: str
    user_id: str
    display_name: str | None = None
    token_type: str = "bearer"


class PrincipalResponse(BaseModel):
    uid: str
    email: str | None = None
    display_name: str | None = None


__all__ = ["AuthResponse", "LoginRequest", "PrincipalResponse", "RegisterRequest"]
