from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import Any, Dict
import logging

from mirsui.api.deps import get_claim_service
from mirsui.auth import get_current_user
from mirsui.core.context import get_backend
from mirsui.schemas.auth import AuthUser
from mirsui.schemas.track import ClaimRequest, CommentCreate
from mirsui.services.claim_service import ClaimConflict, ClaimService, ClaimValidationError
from mirsui.services.feed_service import flatten_owner
from mirsui.storage.base import Backend

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/claim", status_code=status.HTTP_201_CREATED)
async def claim_track(
    payload: ClaimRequest,
    user: AuthUser = Depends(get_current_user),
    claim_service: ClaimService = Depends(get_claim_service)
) -> Dict[str, Any]:
    """Claim a track: assigns the next position and a discovery rating."""
    try:
        return await claim_service.claim_track(user.id, payload)
    except ClaimValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ClaimConflict as e:
        raise HTTPException(
            status_code=409,
            detail={
                "message": str(e),
                "position": e.position,
                "youtube_url": e.youtube_url,
            }
        )
    except Exception as e:
        logger.error(f"Error claiming track: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to claim track")


@router.get("/claim/status")
async def claim_status(
    track_uri: str = Query(..., alias="trackUri", min_length=1),
    user: AuthUser = Depends(get_current_user),
    claim_service: ClaimService = Depends(get_claim_service)
) -> Dict[str, Any]:
    try:
        return await claim_service.get_claim_status(user.id, track_uri)
    except Exception as e:
        logger.error(f"Error fetching claim status: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch claim status")


@router.post("/{track_id}/like")
async def like_track(
    track_id: str,
    user: AuthUser = Depends(get_current_user),
    backend: Backend = Depends(get_backend)
) -> Dict[str, Any]:
    try:
        already_liked = await backend.list_user_liked_track_ids(user.id, [track_id])
        if not already_liked:
            await backend.add_like(track_id, user.id)
        return {"success": True, "liked": True}
    except Exception as e:
        logger.error(f"Error liking track {track_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to like track")


@router.delete("/{track_id}/like")
async def unlike_track(
    track_id: str,
    user: AuthUser = Depends(get_current_user),
    backend: Backend = Depends(get_backend)
) -> Dict[str, Any]:
    try:
        await backend.remove_like(track_id, user.id)
        return {"success": True, "liked": False}
    except Exception as e:
        logger.error(f"Error unliking track {track_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to unlike track")


@router.get("/{track_id}/comments")
async def list_comments(
    track_id: str,
    backend: Backend = Depends(get_backend)
) -> Dict[str, Any]:
    """List a track's comments, newest first."""
    try:
        comments = await backend.list_comments(track_id)
        return {"comments": [flatten_owner(comment) for comment in comments]}
    except Exception as e:
        logger.error(f"Error listing comments for {track_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch comments")


@router.post("/{track_id}/comments", status_code=status.HTTP_201_CREATED)
async def add_comment(
    track_id: str,
    payload: CommentCreate,
    user: AuthUser = Depends(get_current_user),
    backend: Backend = Depends(get_backend)
) -> Dict[str, Any]:
    text = payload.comment_text.strip()
    if not text:
        raise HTTPException(status_code=400, detail="Comment text is required")

    try:
        comment = await backend.add_comment(track_id, user.id, text)
        return {"comment": comment}
    except Exception as e:
        logger.error(f"Error adding comment to {track_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to add comment")
