"""FastAPI dependency utilities."""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from matrisync.application.session import RealtimeSession
from matrisync.domain.entities import AuthUser
from matrisync.infrastructure.database import get_db
from matrisync.infrastructure.realtime_sessions import SessionRegistry
from matrisync.infrastructure.repositories import ProfileRepository
from matrisync.infrastructure.security import decode_access_token

bearer_scheme = HTTPBearer()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def resolve_current_user(token: str, db: Session) -> AuthUser:
    """Resolve the authenticated member for the provided token."""

    try:
        payload = decode_access_token(token)
    except ValueError as exc:
        raise _unauthorized("Invalid credentials") from exc

    profile_id = payload.get("sub")
    if not isinstance(profile_id, str) or not profile_id:
        raise _unauthorized("Invalid credentials")

    user = ProfileRepository(db).get_auth_user(profile_id)
    if user is None:
        raise _unauthorized("Profile not found")
    return user


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> AuthUser:
    """Return the authenticated member from the bearer token."""

    return resolve_current_user(credentials.credentials, db)


def get_session_registry(request: Request) -> SessionRegistry:
    return request.app.state.session_registry


async def get_realtime_session(
    current_user: AuthUser = Depends(get_current_user),
    registry: SessionRegistry = Depends(get_session_registry),
) -> RealtimeSession:
    """Return the member's realtime session, opening it on first use."""

    return await registry.open(current_user)
