"""Track claim workflow: position assignment and discovery rating."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
import logging

from mirsui.schemas.track import ClaimRequest
from mirsui.storage.base import Backend, BackendError

logger = logging.getLogger(__name__)


class ClaimValidationError(ValueError):
    """The claim request is missing required track fields."""


class ClaimConflict(Exception):
    """The user already holds a claim on the track."""

    def __init__(self, position: Optional[int], youtube_url: Optional[str]):
        super().__init__("Track already claimed by this user")
        self.position = position
        self.youtube_url = youtube_url


def calculate_discover_rating(popularity: float, position: int) -> float:
    """
    Score a claim: niche tracks and early claimants score higher.

    Args:
        popularity: Track popularity, 0-100
        position: 1-based claim position on the track

    Returns:
        100 - popularity + 100 / position
    """
    if position < 1:
        raise ValueError("position must be at least 1")
    return 100 - popularity + 100 / position


class ClaimService:
    """Claims tracks on behalf of verified users."""

    def __init__(
        self,
        backend: Backend,
        atomic_position: bool = False,
        position_rpc: str = "next_claim_position"
    ):
        self.backend = backend
        self.atomic_position = atomic_position
        self.position_rpc = position_rpc

    async def claim_track(self, user_id: str, request: ClaimRequest) -> Dict[str, Any]:
        """
        Claim a track for a user.

        Raises:
            ClaimValidationError: If trackUri, trackName or artistName is missing
            ClaimConflict: If the user already claimed this track
        """
        track_uri = (request.trackUri or "").strip()
        track_name = (request.trackName or "").strip()
        artist_name = (request.artistName or "").strip()
        if not track_uri or not track_name or not artist_name:
            raise ClaimValidationError("trackUri, trackName and artistName are required")

        existing = await self.backend.find_claim(user_id, track_uri)
        if existing:
            raise ClaimConflict(existing.get("position"), existing.get("youtube_url"))

        position = await self._next_position(track_uri)
        popularity = request.popularity if request.popularity is not None else 0
        discover_rating = calculate_discover_rating(popularity, position)

        row: Dict[str, Any] = {
            "track_uri": track_uri,
            "track_title": track_name,
            "artist_name": artist_name,
            "album_name": request.albumName,
            "spotify_url": request.spotifyUrl,
            "track_thumbnail": request.trackThumbnail,
            "popularity": popularity,
            "user_id": user_id,
            "position": position,
            "discover_rating": discover_rating,
            "claimedat": datetime.now(timezone.utc).isoformat(),
        }
        message = (request.claimMessage or "").strip()
        if message:
            row["claim_message"] = message

        stored = await self.backend.insert_claim(row)
        logger.info(f"User {user_id} claimed {track_uri} at position {position}")

        await self._check_position_collision(track_uri, position)

        return {
            "success": True,
            "position": position,
            "discover_rating": discover_rating,
            "youtube_url": stored.get("youtube_url"),
            "track": stored,
        }

    async def get_claim_status(self, user_id: str, track_uri: str) -> Dict[str, Any]:
        """Report whether the user holds a claim on the track. Read-only."""
        existing = await self.backend.find_claim(user_id, track_uri)
        if not existing:
            return {"claimed": False, "position": None, "youtube_url": None}
        return {
            "claimed": True,
            "position": existing.get("position"),
            "youtube_url": existing.get("youtube_url"),
        }

    async def _next_position(self, track_uri: str) -> int:
        if self.atomic_position:
            return await self.backend.next_claim_position(track_uri, self.position_rpc)
        # Count-then-insert: concurrent claimants can be handed the same position.
        return await self.backend.count_claims(track_uri) + 1

    async def _check_position_collision(self, track_uri: str, position: int) -> bool:
        """Log when another claim landed on the same position. Returns True on collision."""
        try:
            holders = await self.backend.count_claims_at_position(track_uri, position)
        except BackendError as e:
            logger.warning(f"Could not verify claim position on {track_uri}: {str(e)}")
            return False
        if holders > 1:
            logger.warning(
                f"Claim position collision on {track_uri}: "
                f"{holders} claims hold position {position}"
            )
            return True
        return False
