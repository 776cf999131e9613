from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, field_validator

from mirsui.schemas.auth import USERNAME_PATTERN


class Profile(BaseModel):
    """Public profile row, created by the auth provider's signup trigger."""
    id: str
    email: Optional[str] = None
    username: Optional[str] = None
    description: Optional[str] = None
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    rating: float = 0
    points: int = 0
    prophet_points: Optional[int] = None

    model_config = ConfigDict(extra="allow")


class ProfileUpdate(BaseModel):
    """Mutable profile fields. Anything else in the payload, ``id`` included, is dropped."""
    username: Optional[str] = None
    display_name: Optional[str] = None
    description: Optional[str] = None
    avatar_url: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator('username')
    def validate_username(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            raise ValueError("Username cannot be removed")
        if len(v) < 3 or not USERNAME_PATTERN.fullmatch(v):
            raise ValueError("Username must be at least 3 characters of letters, numbers or underscores")
        return v

    def to_update(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)
