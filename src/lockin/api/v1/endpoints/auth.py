"""Authentication endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from lockin.api.v1.dependencies import CurrentUserDep, RuntimeDep, raise_validation_error
from lockin.core.errors import ValidationError
from lockin.core.security import create_access_token
from lockin.schemas.auth import Credentials, SignUpResponse, TokenResponse

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post(
    "/signup",
    response_model=SignUpResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account and start its tracking session",
)
async def sign_up(payload: Credentials, runtime: RuntimeDep) -> SignUpResponse:
    try:
        user_id = await runtime.identity.sign_up(payload.email, payload.password)
    except ValidationError as err:
        raise_validation_error(err)
    await runtime.open_session(user_id)
    return SignUpResponse(
        user_id=user_id,
        access_token=create_access_token(user_id, runtime.settings),
    )


@router.post("/signin", response_model=TokenResponse, summary="Sign in and resume tracking")
async def sign_in(payload: Credentials, runtime: RuntimeDep) -> TokenResponse:
    try:
        user_id = await runtime.identity.sign_in(payload.email, payload.password)
    except ValidationError as err:
        raise_validation_error(err)
    await runtime.open_session(user_id)
    return TokenResponse(
        user_id=user_id,
        access_token=create_access_token(user_id, runtime.settings),
    )


@router.post("/signout", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(user_id: CurrentUserDep, runtime: RuntimeDep) -> Response:
    """Stop the timer, save pending time and sign out."""
    if runtime.session is not None and runtime.session.user_id == user_id:
        await runtime.sign_out()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
