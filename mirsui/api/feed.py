from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Any, Dict, Optional
import logging

from mirsui.api.deps import get_feed_service
from mirsui.auth import get_optional_user
from mirsui.core.config import Settings
from mirsui.core.context import get_app_settings
from mirsui.schemas.auth import AuthUser
from mirsui.schemas.track import UserLikesRequest
from mirsui.services.feed_service import FeedService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def get_feed(
    limit: Optional[int] = Query(default=None, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    feed_service: FeedService = Depends(get_feed_service),
    settings: Settings = Depends(get_app_settings)
) -> Dict[str, Any]:
    """Get a page of claimed tracks with owner profile and like/comment counts."""
    try:
        page_size = limit if limit is not None else settings.FEED_DEFAULT_LIMIT
        return await feed_service.get_feed(page_size, offset)
    except Exception as e:
        logger.error(f"Error fetching feed: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch feed")


@router.get("/recent-claims")
async def get_recent_claims(
    limit: Optional[int] = Query(default=None, ge=1, le=50),
    feed_service: FeedService = Depends(get_feed_service),
    settings: Settings = Depends(get_app_settings)
) -> Dict[str, Any]:
    """Get the most recent claims, one per track."""
    try:
        count = limit if limit is not None else settings.RECENT_CLAIMS_DEFAULT_LIMIT
        tracks = await feed_service.get_recent_claims(count)
        return {"tracks": tracks}
    except Exception as e:
        logger.error(f"Error fetching recent claims: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch recent claims")


@router.post("/user-likes")
async def get_user_likes(
    payload: UserLikesRequest,
    user: Optional[AuthUser] = Depends(get_optional_user),
    feed_service: FeedService = Depends(get_feed_service)
) -> Dict[str, Any]:
    """Which of the supplied tracks the caller has liked. Anonymous callers get an empty list."""
    try:
        liked = await feed_service.get_user_likes(user.id if user else None, payload.trackIds)
        return {"liked_track_ids": liked}
    except Exception as e:
        logger.error(f"Error fetching user likes: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch user likes")
