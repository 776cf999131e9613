from fastapi import APIRouter, Depends, HTTPException, Request, status
from typing import Any, Dict
import logging

from mirsui.api.deps import rate_limit
from mirsui.auth import extract_bearer_token, get_current_user
from mirsui.core.config import Settings
from mirsui.core.context import get_app_settings, get_backend
from mirsui.schemas.auth import (
    AuthUser,
    LoginRequest,
    RefreshRequest,
    ResetPasswordRequest,
    SignupRequest,
)
from mirsui.storage.base import Backend, IdentityError

logger = logging.getLogger(__name__)

router = APIRouter()

PASSWORD_RESET_MESSAGE = "If the email is registered, a password reset link has been sent"


def _dump(model: Any) -> Any:
    return model.model_dump() if model is not None else None


@router.post("/signup", status_code=status.HTTP_201_CREATED, dependencies=[Depends(rate_limit("signup"))])
async def signup(
    payload: SignupRequest,
    backend: Backend = Depends(get_backend),
    settings: Settings = Depends(get_app_settings)
) -> Dict[str, Any]:
    """Create an account; the provider sends the confirmation email."""
    try:
        if await backend.get_profile_by_username(payload.username):
            raise HTTPException(status_code=409, detail="Username already taken")

        metadata = {
            "username": payload.username,
            "display_name": payload.display_name or payload.username,
        }
        result = await backend.sign_up(
            payload.email,
            payload.password,
            metadata,
            redirect_to=settings.EMAIL_REDIRECT_URL
        )
        logger.info(f"Account created for username {payload.username}")
        return {
            "message": "Signup successful, check your email to confirm your account",
            "user": _dump(result.user),
            "session": _dump(result.session),
        }

    except HTTPException:
        raise
    except IdentityError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except Exception as e:
        logger.error(f"Error during signup: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create account")


@router.post("/login", dependencies=[Depends(rate_limit("login"))])
async def login(
    payload: LoginRequest,
    backend: Backend = Depends(get_backend)
) -> Dict[str, Any]:
    """Exchange credentials for a session."""
    try:
        result = await backend.sign_in(payload.email, payload.password)
        if result.session is None or result.user is None:
            raise HTTPException(status_code=401, detail="Invalid email or password")

        profile = await backend.get_profile(result.user.id)
        return {
            "user": _dump(result.user),
            "session": _dump(result.session),
            "profile": profile,
        }

    except HTTPException:
        raise
    except IdentityError as e:
        logger.debug(f"Login rejected: {e.message}")
        raise HTTPException(status_code=401, detail="Invalid email or password")
    except Exception as e:
        logger.error(f"Error during login: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to log in")


@router.post("/logout")
async def logout(
    request: Request,
    backend: Backend = Depends(get_backend)
) -> Dict[str, Any]:
    """
    Sign out.

    Session invalidation is best effort: the client is always told it is
    signed out, and provider failures are only logged.
    """
    token = extract_bearer_token(request.headers.get("Authorization"))
    if token:
        try:
            await backend.sign_out(token)
        except Exception as e:
            logger.warning(f"Best-effort session invalidation failed: {str(e)}")
    return {"message": "Logged out successfully"}


@router.post("/refresh")
async def refresh(
    payload: RefreshRequest,
    backend: Backend = Depends(get_backend)
) -> Dict[str, Any]:
    """Exchange a refresh token for a new session."""
    try:
        result = await backend.refresh_session(payload.refresh_token)
        if result.session is None:
            raise HTTPException(status_code=401, detail="Invalid refresh token")
        return {"session": _dump(result.session), "user": _dump(result.user)}

    except HTTPException:
        raise
    except IdentityError:
        raise HTTPException(status_code=401, detail="Invalid refresh token")
    except Exception as e:
        logger.error(f"Error refreshing session: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to refresh session")


@router.post("/reset-password", dependencies=[Depends(rate_limit("password_reset"))])
async def reset_password(
    payload: ResetPasswordRequest,
    backend: Backend = Depends(get_backend),
    settings: Settings = Depends(get_app_settings)
) -> Dict[str, Any]:
    """Trigger a password reset email. The answer never reveals whether the account exists."""
    try:
        await backend.reset_password(payload.email, redirect_to=settings.PASSWORD_RESET_REDIRECT_URL)
    except Exception as e:
        logger.warning(f"Password reset request failed: {str(e)}")
    return {"message": PASSWORD_RESET_MESSAGE}


@router.get("/verify")
async def verify(user: AuthUser = Depends(get_current_user)) -> Dict[str, Any]:
    """Check that the bearer token is valid."""
    return {"valid": True, "user": user.model_dump()}


@router.get("/me")
async def me(
    user: AuthUser = Depends(get_current_user),
    backend: Backend = Depends(get_backend)
) -> Dict[str, Any]:
    """Get the caller's identity and profile."""
    try:
        profile = await backend.get_profile(user.id)
        return {"user": user.model_dump(), "profile": profile}
    except Exception as e:
        logger.error(f"Error fetching current user profile: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch user profile")
