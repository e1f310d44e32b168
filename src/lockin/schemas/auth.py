"""Authentication request and response schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field

from lockin.schemas.base import CamelModel


class Credentials(BaseModel):
    """Email and password submitted to sign up or sign in."""

    email: str = Field("", description="Account email address")
    password: str = Field("", description="Account password")


class TokenResponse(CamelModel):
    """Response returned after a successful sign-in."""

    user_id: str = Field(..., description="Opaque user identifier")
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field("bearer", description="Token type (always 'bearer')")


class SignUpResponse(TokenResponse):
    """Sign-up signs the new user in straight away."""

    created: bool = Field(True, description="True when a new account was stored")
