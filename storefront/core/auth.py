# storefront/core/auth.py
from datetime import datetime, timedelta, timezone
from typing import Any, Literal

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlmodel import Session

from storefront.core.config import get_settings
from storefront.core.errors import Forbidden, Unauthorized
from storefront.database import get_session
from storefront.models.user import User

settings = get_settings()

# Token namespaces. Customer and admin tokens are signed with different
# secrets, so one can never be replayed as the other.
Namespace = Literal["user", "admin"]

# HTTP Bearer scheme:
# - auto_error=False => missing Authorization header will NOT raise immediately
#   so we can answer with our own 401 envelope.
bearer_scheme = HTTPBearer(auto_error=False)


def _secret_for(namespace: Namespace) -> str:
    return settings.ADMIN_JWT_SECRET if namespace == "admin" else settings.JWT_SECRET


def token_lifetime_seconds() -> int:
    return settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60


def create_access_token(user_id: int, namespace: Namespace = "user") -> str:
    """
    Issue an HS256 JWT for a user.

    Claims:
      - sub: user id (string)
      - ns: token namespace ("user" | "admin")
      - iat / exp
    """
    now = datetime.now(timezone.utc)
    claims = {
        "sub": str(user_id),
        "ns": namespace,
        "iat": now,
        "exp": now + timedelta(seconds=token_lifetime_seconds()),
    }
    return jwt.encode(claims, _secret_for(namespace), algorithm=settings.JWT_ALG)


def decode_access_token(token: str, namespace: Namespace = "user") -> dict[str, Any]:
    """
    Decode and verify an access token of the given namespace.

    Verification:
      - signature (HS256 with the namespace's secret)
      - expiration time (exp)
      - ns claim matches the expected namespace

    Raises:
        Unauthorized: if token is invalid/expired or from another namespace.
    """
    try:
        claims = jwt.decode(
            token,
            _secret_for(namespace),
            algorithms=[settings.JWT_ALG],
        )
    except JWTError:
        raise Unauthorized("Invalid or expired token")

    if claims.get("ns") != namespace:
        raise Unauthorized("Invalid or expired token")
    return claims


def _resolve_user(
    credentials: HTTPAuthorizationCredentials | None,
    session: Session,
    namespace: Namespace,
) -> User:
    if credentials is None:
        raise Unauthorized("Authentication required")

    claims = decode_access_token(credentials.credentials, namespace)
    try:
        user_id = int(claims.get("sub", ""))
    except ValueError:
        raise Unauthorized("Invalid sub in token")

    user = session.get(User, user_id)
    if user is None:
        raise Unauthorized("User no longer exists")
    return user


def require_auth(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> User:
    """
    Enforce a customer-namespace token.

    Returns:
        The authenticated User.

    Raises:
        Unauthorized(401): missing/invalid token or unknown user.
    """
    return _resolve_user(credentials, session, "user")


def require_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> User:
    """
    Enforce an admin-namespace token held by a user with roles == "Admin".

    Raises:
        Unauthorized(401): missing/invalid admin token.
        Forbidden(403): the account has been demoted since login.
    """
    user = _resolve_user(credentials, session, "admin")
    if user.roles != "Admin":
        raise Forbidden("Admin access required")
    return user
