"""Bearer-token authentication.

Tokens are issued by the account service that fronts this API; this module
only verifies them and turns the ``user_id`` (or ``sub``) claim into a
``User``. ``issue_token`` mints compatible tokens for tooling and tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlmodel import Session

from storefront.config import settings
from storefront.database import get_session
from storefront.models.user import User

bearer_scheme = HTTPBearer(auto_error=False, description="JWT issued by the account service")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def issue_token(user_id: int, expires_in: Optional[timedelta] = None) -> str:
    lifetime = expires_in or timedelta(minutes=settings.access_token_expire_minutes)
    claims = {
        "user_id": user_id,
        "exp": datetime.now(timezone.utc) + lifetime,
    }
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def principal_id(token: str) -> int:
    """User id carried by a valid token; raises 401 otherwise."""
    try:
        claims = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        raise _unauthorized("Could not validate credentials")

    subject = claims.get("user_id") or claims.get("sub")
    try:
        return int(subject)
    except (TypeError, ValueError):
        raise _unauthorized("Invalid token payload")


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> User:
    if credentials is None:
        raise _unauthorized("Not authenticated")

    user = session.get(User, principal_id(credentials.credentials))
    if user is None:
        raise _unauthorized("User not found")

    if not user.can_login:
        raise HTTPException(status.HTTP_403_FORBIDDEN, "User account is disabled")

    return user
