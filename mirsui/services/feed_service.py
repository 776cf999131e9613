"""Feed of claimed tracks: paging, engagement counts and recent-claim deduplication."""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from mirsui.storage.base import Backend

logger = logging.getLogger(__name__)


def count_by_track(rows: List[Dict[str, Any]]) -> Dict[str, int]:
    """
    Reduce one-row-per-item results into per-track counts.

    Args:
        rows: Rows carrying a ``track_id`` key

    Returns:
        Mapping of track id to number of rows
    """
    counts: Dict[str, int] = {}
    for row in rows:
        track_id = row.get("track_id")
        if track_id is None:
            continue
        key = str(track_id)
        counts[key] = counts.get(key, 0) + 1
    return counts


def dedupe_by_track_uri(rows: List[Dict[str, Any]], limit: int) -> List[Dict[str, Any]]:
    """
    Keep the first row for each track uri, in the given order, up to ``limit`` rows.

    Rows without a track uri are skipped.
    """
    unique: Dict[str, Dict[str, Any]] = {}
    for row in rows:
        if len(unique) >= limit:
            break
        track_uri = row.get("track_uri")
        if not track_uri or track_uri in unique:
            continue
        unique[track_uri] = row
    return list(unique.values())


def flatten_owner(track: Dict[str, Any]) -> Dict[str, Any]:
    """Replace the joined ``profiles`` object with the owner's public fields."""
    flat = {k: v for k, v in track.items() if k != "profiles"}
    profile = track.get("profiles") or {}
    flat.update({
        "username": profile.get("username") or "",
        "display_name": profile.get("display_name"),
        "avatar_url": profile.get("avatar_url"),
    })
    return flat


def _merge_engagement(
    track: Dict[str, Any],
    likes: Dict[str, int],
    comments: Dict[str, int]
) -> Dict[str, Any]:
    enriched = flatten_owner(track)
    track_id = str(track.get("id"))
    enriched.update({
        "likes_count": likes.get(track_id, 0),
        "comments_count": comments.get(track_id, 0),
    })
    return enriched


class FeedService:
    """Read-side aggregation over claimed tracks."""

    def __init__(self, backend: Backend, recent_overfetch: int = 5):
        self.backend = backend
        self.recent_overfetch = recent_overfetch

    async def get_feed(self, limit: int, offset: int) -> Dict[str, Any]:
        """
        Get one page of claimed tracks enriched with owner profile and engagement counts.

        ``total`` is the number of tracks in this page.
        """
        tracks = await self.backend.list_claimed_tracks(offset, limit)
        if not tracks:
            return {"tracks": [], "total": 0}

        track_ids = [str(track["id"]) for track in tracks if track.get("id") is not None]
        like_rows, comment_rows = await asyncio.gather(
            self.backend.list_like_track_ids(track_ids),
            self.backend.list_comment_track_ids(track_ids),
        )
        likes = count_by_track(like_rows)
        comments = count_by_track(comment_rows)

        enriched = [_merge_engagement(track, likes, comments) for track in tracks]
        logger.debug(f"Feed page offset={offset} limit={limit} returned {len(enriched)} tracks")
        return {"tracks": enriched, "total": len(enriched)}

    async def get_recent_claims(self, limit: int) -> List[Dict[str, Any]]:
        """
        Get up to ``limit`` most recent claims, one per track.

        Over-fetches ``limit * recent_overfetch`` rows once; if the buffer holds
        fewer unique tracks, fewer results are returned.
        """
        rows = await self.backend.list_recent_claims(limit * self.recent_overfetch)
        return [flatten_owner(row) for row in dedupe_by_track_uri(rows, limit)]

    async def get_user_likes(self, user_id: Optional[str], track_ids: List[str]) -> List[str]:
        """Track ids among ``track_ids`` the user has liked; empty for anonymous callers."""
        if not user_id or not track_ids:
            return []
        return await self.backend.list_user_liked_track_ids(user_id, track_ids)
