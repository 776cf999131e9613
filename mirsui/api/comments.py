from fastapi import APIRouter, Depends, HTTPException
from typing import Any, Dict
import logging

from mirsui.auth import ensure_owner, get_current_user
from mirsui.core.context import get_backend
from mirsui.schemas.auth import AuthUser
from mirsui.storage.base import Backend

logger = logging.getLogger(__name__)

router = APIRouter()


@router.delete("/{comment_id}")
async def delete_comment(
    comment_id: str,
    user: AuthUser = Depends(get_current_user),
    backend: Backend = Depends(get_backend)
) -> Dict[str, Any]:
    """Delete a comment. Only its author may do so."""
    try:
        comment = await backend.get_comment(comment_id)
        if not comment:
            raise HTTPException(status_code=404, detail="Comment not found")
        ensure_owner(user, comment.get("user_id"), detail="You can only delete your own comments")

        await backend.delete_comment(comment_id)
        return {"success": True}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error deleting comment {comment_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete comment")
