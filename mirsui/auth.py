from typing import Optional
from fastapi import Depends, HTTPException, Request, status
import jwt
import logging

from mirsui.core.context import get_backend
from mirsui.schemas.auth import AuthUser
from mirsui.storage.base import Backend, BackendError

logger = logging.getLogger(__name__)


def _credentials_exception(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def extract_bearer_token(auth_header: Optional[str]) -> Optional[str]:
    """
    Pull a structurally valid access token out of an Authorization header.

    The token must be a JWT carrying a ``sub`` claim. Its signature is not
    checked here; that is the auth provider's job.

    Args:
        auth_header: Raw Authorization header value

    Returns:
        The token, or None if the header is missing or malformed
    """
    if not auth_header:
        return None

    scheme, _, token = auth_header.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        return None

    try:
        payload = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError as e:
        logger.debug(f"Rejecting malformed bearer token: {str(e)}")
        return None

    if not payload.get("sub"):
        logger.debug("Rejecting bearer token without subject")
        return None
    return token


async def get_access_token(request: Request) -> str:
    """Dependency returning the request's bearer token, 401 when absent or malformed."""
    token = extract_bearer_token(request.headers.get("Authorization"))
    if token is None:
        raise _credentials_exception("Missing or malformed Authorization header")
    return token


async def get_current_user(
    token: str = Depends(get_access_token),
    backend: Backend = Depends(get_backend)
) -> AuthUser:
    """
    Get the current authenticated user by verifying the bearer token with the provider.

    Returns:
        The verified identity

    Raises:
        HTTPException: If the token is invalid or expired
    """
    try:
        return await backend.get_user(token)
    except BackendError as e:
        logger.debug(f"Token verification failed: {str(e)}")
        raise _credentials_exception("Invalid or expired token")
    except Exception as e:
        logger.error(f"Unexpected error verifying token: {str(e)}", exc_info=True)
        raise _credentials_exception("Invalid or expired token")


async def get_optional_user(
    request: Request,
    backend: Backend = Depends(get_backend)
) -> Optional[AuthUser]:
    """Like get_current_user, but anonymous or unverifiable callers yield None."""
    token = extract_bearer_token(request.headers.get("Authorization"))
    if token is None:
        return None
    try:
        return await backend.get_user(token)
    except Exception as e:
        logger.debug(f"Ignoring unverifiable optional credentials: {str(e)}")
        return None


def ensure_owner(user: AuthUser, owner_id: Optional[str], detail: str = "Forbidden") -> None:
    """Raise 403 unless the verified identity owns the resource."""
    if owner_id is None or str(owner_id) != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
