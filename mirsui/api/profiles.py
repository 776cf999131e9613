from fastapi import APIRouter, Depends, HTTPException
from typing import Any, Dict
import logging

from mirsui.auth import ensure_owner, get_current_user
from mirsui.core.context import get_backend
from mirsui.schemas.auth import AuthUser
from mirsui.schemas.profile import ProfileUpdate
from mirsui.storage.base import Backend

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def list_profiles(backend: Backend = Depends(get_backend)) -> Dict[str, Any]:
    """List profiles, highest rating first."""
    try:
        profiles = await backend.list_profiles()
        return {"profiles": profiles, "count": len(profiles)}
    except Exception as e:
        logger.error(f"Error listing profiles: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch profiles")


@router.get("/username/{username}")
async def get_profile_by_username(
    username: str,
    backend: Backend = Depends(get_backend)
) -> Dict[str, Any]:
    try:
        profile = await backend.get_profile_by_username(username)
        if not profile:
            raise HTTPException(status_code=404, detail="Profile not found")
        return {"profile": profile}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching profile by username: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch profile")


@router.get("/{profile_id}")
async def get_profile(
    profile_id: str,
    backend: Backend = Depends(get_backend)
) -> Dict[str, Any]:
    try:
        profile = await backend.get_profile(profile_id)
        if not profile:
            raise HTTPException(status_code=404, detail="Profile not found")
        return {"profile": profile}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching profile {profile_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch profile")


@router.patch("/{profile_id}")
async def update_profile(
    profile_id: str,
    update: ProfileUpdate,
    user: AuthUser = Depends(get_current_user),
    backend: Backend = Depends(get_backend)
) -> Dict[str, Any]:
    """Update the caller's own profile. The ``id`` field is never written."""
    ensure_owner(user, profile_id, detail="You can only update your own profile")

    fields = update.to_update()
    if not fields:
        raise HTTPException(status_code=400, detail="No updatable fields provided")

    try:
        if "username" in fields:
            taken = await backend.get_profile_by_username(fields["username"])
            if taken and str(taken.get("id")) != profile_id:
                raise HTTPException(status_code=409, detail="Username already taken")

        profile = await backend.update_profile(profile_id, fields)
        if not profile:
            raise HTTPException(status_code=404, detail="Profile not found")
        logger.info(f"Profile {profile_id} updated fields: {sorted(fields)}")
        return {"profile": profile}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating profile {profile_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update profile")
