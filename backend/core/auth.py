"""
Authentication for the restaurant panel and the super-admin console.

Provides JWT issue/verify and role-based authorization. Tokens carry the
user id, role and owning tenant so panel requests can be scoped without
an extra lookup.
"""

from datetime import datetime, timedelta
from typing import List, Optional
import logging

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel

from .config import Settings
from .deps import get_app_settings

logger = logging.getLogger(__name__)

SUPER_ADMIN = "SUPER_ADMIN"
TENANT_ADMIN = "TENANT_ADMIN"
MANAGER = "MANAGER"
STAFF = "STAFF"

TENANT_MANAGER_ROLES = [TENANT_ADMIN, MANAGER]
TENANT_ALL_ROLES = [TENANT_ADMIN, MANAGER, STAFF]

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
security = HTTPBearer(auto_error=False)


class TokenData(BaseModel):
    """Token payload data."""

    user_id: int
    email: Optional[str] = None
    name: Optional[str] = None
    role: str
    tenant_id: Optional[int] = None
    tenant_slug: Optional[str] = None


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        logger.warning("Unrecognised password hash format")
        return False


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(
    data: dict,
    settings: Settings,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a signed JWT access token."""
    to_encode = data.copy()
    expire = datetime.utcnow() + (
        expires_delta
        or timedelta(minutes=settings.jwt_access_token_expire_minutes)
    )
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(
        to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm
    )


def verify_token(token: str, settings: Settings) -> Optional[TokenData]:
    """
    Verify and decode a JWT token.

    Returns:
        TokenData if valid, None otherwise
    """
    try:
        payload = jwt.decode(
            token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm]
        )
    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        return None

    if payload.get("type") != "access":
        logger.warning(f"Token type mismatch: got {payload.get('type')}")
        return None

    try:
        user_id = int(payload.get("sub"))
    except (ValueError, TypeError):
        return None

    role = payload.get("role")
    if not role:
        return None

    return TokenData(
        user_id=user_id,
        email=payload.get("email"),
        name=payload.get("name"),
        role=role,
        tenant_id=payload.get("tenant_id"),
        tenant_slug=payload.get("tenant_slug"),
    )


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_app_settings),
) -> TokenData:
    """Resolve the authenticated user from the bearer token."""
    if not credentials:
        raise _credentials_exception()

    token_data = verify_token(credentials.credentials, settings)
    if token_data is None:
        raise _credentials_exception()

    request.state.user = token_data
    return token_data


def require_roles(required_roles: List[str]):
    """Dependency enforcing that the current user holds one of the roles."""

    required_set = set(required_roles)

    async def check(user: TokenData = Depends(get_current_user)) -> TokenData:
        if user.role not in required_set:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Operation requires one of these roles: {required_roles}",
            )
        if user.role != SUPER_ADMIN and user.tenant_id is None:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="User is not attached to a restaurant",
            )
        return user

    return check


require_super_admin = require_roles([SUPER_ADMIN])
require_tenant_user = require_roles(TENANT_ALL_ROLES)
require_tenant_manager = require_roles(TENANT_MANAGER_ROLES)
require_tenant_admin = require_roles([TENANT_ADMIN])
