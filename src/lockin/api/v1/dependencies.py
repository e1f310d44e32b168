"""Shared API dependencies for authentication and error mapping."""

from typing import Annotated, NoReturn

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from lockin.core import errors
from lockin.core.security import decode_access_token
from lockin.services.runtime import TrackerRuntime
from lockin.services.session import TrackingSession

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()

_STATUS_BY_ERROR: dict[type[errors.ValidationError], int] = {
    errors.UserNotFound: status.HTTP_404_NOT_FOUND,
    errors.WrongPassword: status.HTTP_401_UNAUTHORIZED,
    errors.EmailInUse: status.HTTP_409_CONFLICT,
    errors.TooManyRequests: status.HTTP_429_TOO_MANY_REQUESTS,
}


def get_runtime(request: Request) -> TrackerRuntime:
    """Return the runtime created at startup."""
    runtime: TrackerRuntime = request.app.state.runtime
    return runtime


RuntimeDep = Annotated[TrackerRuntime, Depends(get_runtime)]


def raise_validation_error(err: errors.ValidationError) -> NoReturn:
    """Translate a validation error into the matching HTTP error."""
    code = _STATUS_BY_ERROR.get(type(err), status.HTTP_400_BAD_REQUEST)
    raise HTTPException(status_code=code, detail=err.message) from err


def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    runtime: RuntimeDep,
) -> str:
    """Return the user id of a valid bearer token.

    Raises:
        HTTPException: If the token is invalid or expired.
    """
    user_id = decode_access_token(credentials.credentials, runtime.settings)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )
    return user_id


CurrentUserDep = Annotated[str, Depends(get_current_user_id)]


def get_active_session(user_id: CurrentUserDep, runtime: RuntimeDep) -> TrackingSession:
    """Return the open tracking session of the authenticated user."""
    session = runtime.session
    if session is None or session.user_id != user_id:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="No active tracking session for this user; sign in again",
        )
    return session


SessionDep = Annotated[TrackingSession, Depends(get_active_session)]
