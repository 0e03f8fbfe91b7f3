"""Session tokens: a signed JWT carried in an httponly cookie or a bearer header."""
from datetime import timedelta
from typing import Optional

from fastapi import Request, Response
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from slapshot.core.config import settings
from slapshot.models.user import User
from slapshot.utils.datetime_utils import utcnow


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    to_encode = data.copy()
    expire = utcnow() + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_session_token(user: User) -> str:
    return create_access_token({"sub": str(user.id)})


def decode_access_token(token: str) -> dict:
    """
    Decode and verify a JWT token without database lookup.
    Raises JWTError if token is invalid or expired.
    Returns the decoded payload.
    """
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise JWTError("Invalid or expired token")


def extract_token(request: Request) -> Optional[str]:
    """Bearer header wins over the session cookie."""
    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


def resolve_user(db: Session, token: Optional[str]) -> Optional[User]:
    """Return the user a session token belongs to, or None for any bad token."""
    if not token:
        return None
    try:
        payload = decode_access_token(token)
    except JWTError:
        return None

    user_id = payload.get("sub")
    if user_id is None or not str(user_id).isdigit():
        return None
    return db.query(User).filter(User.id == int(user_id)).first()


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )
