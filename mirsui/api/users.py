from fastapi import APIRouter, Depends, HTTPException
from typing import Any, Dict
import logging

from mirsui.auth import get_current_user
from mirsui.core.context import get_backend
from mirsui.schemas.auth import AuthUser
from mirsui.storage.base import Backend

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/points")
async def get_points(
    user: AuthUser = Depends(get_current_user),
    backend: Backend = Depends(get_backend)
) -> Dict[str, Any]:
    """Get the caller's point total."""
    try:
        profile = await backend.get_profile(user.id)
        if not profile:
            raise HTTPException(status_code=404, detail="Profile not found")
        return {"points": profile.get("points") or 0}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching points: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch points")
