"""Request and response schemas."""

from mirsui.schemas.auth import (
    AuthResult,
    AuthSession,
    AuthUser,
    LoginRequest,
    RefreshRequest,
    ResetPasswordRequest,
    SignupRequest,
)
from mirsui.schemas.profile import Profile, ProfileUpdate
from mirsui.schemas.track import ClaimRequest, CommentCreate, UserLikesRequest

__all__ = [
    'AuthResult',
    'AuthSession',
    'AuthUser',
    'LoginRequest',
    'RefreshRequest',
    'ResetPasswordRequest',
    'SignupRequest',
    'Profile',
    'ProfileUpdate',
    'ClaimRequest',
    'CommentCreate',
    'UserLikesRequest',
]
