"""Bearer-token identity and the explicit session object handed to services."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from ..config import get_settings
from ..security.secrets import MissingSecretError, require_secret

logger = logging.getLogger(__name__)

_security = HTTPBearer(auto_error=False)


@dataclass(frozen=True, slots=True)
class AuthSession:
    """Identity of the caller; ``user_id`` is ``None`` when signed out."""

    user_id: str | None = None
    is_loading: bool = False

    def current_user_id(self) -> str | None:
        if self.is_loading or not self.user_id:
            return None
        return self.user_id

    @property
    def is_authenticated(self) -> bool:
        return self.current_user_id() is not None


ANONYMOUS_SESSION = AuthSession()


def _get_jwt_secret() -> str:
    try:
        return require_secret("JWT_SECRET_KEY", get_settings().jwt_secret_key)
    except MissingSecretError as exc:
        raise RuntimeError(str(exc)) from exc


def create_access_token(subject: str, *, expires_minutes: Optional[int] = None) -> str:
    """Create a signed JWT holding the provided user id as ``sub``."""

    settings = get_settings()
    expire_delta = timedelta(minutes=expires_minutes or settings.jwt_expires_minutes)
    now = datetime.now(timezone.utc)
    payload = {"sub": subject, "exp": now + expire_delta, "iat": now}
    return jwt.encode(payload, _get_jwt_secret(), algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> str:
    """Decode and validate a JWT, returning the embedded user id."""

    try:
        payload = jwt.decode(token, _get_jwt_secret(), algorithms=[get_settings().jwt_algorithm])
    except JWTError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload")
    return subject.strip()


def require_user_id(session: AuthSession) -> str:
    user_id = session.current_user_id()
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
    return user_id


async def get_auth_session(
    credentials: HTTPAuthorizationCredentials | None = Depends(_security),
) -> AuthSession:
    """Resolve the caller's session; no token yields the anonymous session."""

    if credentials is None:
        return ANONYMOUS_SESSION
    if credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
    return AuthSession(user_id=decode_access_token(credentials.credentials))


async def require_auth_session(session: AuthSession = Depends(get_auth_session)) -> AuthSession:
    require_user_id(session)
    return session


__all__ = [
    "AuthSession",
    "ANONYMOUS_SESSION",
    "create_access_token",
    "decode_access_token",
    "require_user_id",
    "get_auth_session",
    "require_auth_session",
]
