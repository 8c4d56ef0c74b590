from datetime import datetime, timedelta, timezone
import logging
from typing import Any, Dict, Optional, cast

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
import jwt
from jwt import PyJWTError

from .core.config import settings
from .core.exceptions import UnauthorizedException

logger = logging.getLogger(__name__)

bearer_scheme_optional = HTTPBearer(auto_error=False)


def _secret_value() -> str:
    return settings.secret_key.get_secret_value()


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode and verify a JWT access token."""
    payload_raw = jwt.decode(
        token,
        _secret_value(),
        algorithms=[settings.algorithm],
        options={"verify_aud": False},
    )
    return cast(Dict[str, Any], payload_raw)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: The data to encode in the token; ``sub`` is the user id
        expires_delta: Optional expiration time delta

    Returns:
        str: The encoded JWT token
    """
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.access_token_expire_minutes
        )
    to_encode.update({"exp": expire})

    encoded_jwt = cast(str, jwt.encode(to_encode, _secret_value(), algorithm=settings.algorithm))
    logger.debug(f"Created access token for user: {data.get('sub')}")
    return encoded_jwt


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme_optional),
) -> str:
    """
    Dependency to get the current authenticated user id from the bearer token.

    Raises:
        HTTPException: If the token is missing, invalid or expired
    """
    not_authenticated = UnauthorizedException(
        "Not authenticated", code="UNAUTHORIZED"
    ).to_http_exception()
    invalid_credentials = UnauthorizedException(
        "Could not validate credentials", code="UNAUTHORIZED"
    ).to_http_exception()

    if credentials is None or not credentials.credentials:
        raise not_authenticated

    try:
        payload = decode_access_token(credentials.credentials)
    except PyJWTError as e:
        logger.warning(f"JWT validation error: {str(e)}")
        raise invalid_credentials

    user_id = payload.get("sub")
    if not isinstance(user_id, str) or not user_id:
        logger.warning("Token payload missing 'sub' field")
        raise invalid_credentials
    return user_id
