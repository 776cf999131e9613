from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class ClaimRequest(BaseModel):
    """Body of a track claim. Field names follow the client's camelCase payload."""
    trackUri: Optional[str] = None
    trackName: Optional[str] = None
    artistName: Optional[str] = None
    albumName: Optional[str] = None
    spotifyUrl: Optional[str] = None
    trackThumbnail: Optional[str] = None
    popularity: Optional[int] = Field(default=None, ge=0, le=100)
    claimMessage: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class CommentCreate(BaseModel):
    comment_text: str = ""


class UserLikesRequest(BaseModel):
    trackIds: List[str] = []
