import re
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, field_validator

USERNAME_PATTERN = re.compile(r"[A-Za-z0-9_]+")


class SignupRequest(BaseModel):
    email: str
    password: str
    username: str
    display_name: Optional[str] = None

    @field_validator('email')
    def validate_email(cls, v: str) -> str:
        v = v.strip()
        if not v or "@" not in v:
            raise ValueError("A valid email is required")
        return v

    @field_validator('password')
    def validate_password(cls, v: str) -> str:
        if len(v) < 6:
            raise ValueError("Password must be at least 6 characters long")
        return v

    @field_validator('username')
    def validate_username(cls, v: str) -> str:
        if len(v) < 3:
            raise ValueError("Username must be at least 3 characters long")
        if not USERNAME_PATTERN.fullmatch(v):
            raise ValueError("Username may only contain letters, numbers and underscores")
        return v


class LoginRequest(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1)


class ResetPasswordRequest(BaseModel):
    email: str = Field(min_length=1)


class AuthUser(BaseModel):
    """Identity as reported by the auth provider."""
    id: str
    email: Optional[str] = None
    user_metadata: Dict[str, Any] = {}
    email_confirmed_at: Optional[str] = None


class AuthSession(BaseModel):
    access_token: str
    refresh_token: str
    expires_in: Optional[int] = None
    expires_at: Optional[int] = None
    token_type: str = "bearer"


class AuthResult(BaseModel):
    user: Optional[AuthUser] = None
    session: Optional[AuthSession] = None
