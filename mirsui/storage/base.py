"""Base interface for the backend-as-a-service provider."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from mirsui.schemas.auth import AuthResult, AuthSession, AuthUser


class BackendError(Exception):
    """The backend failed to carry out a request."""


class IdentityError(BackendError):
    """The auth provider rejected the request (bad credentials, duplicate email, expired token...)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class Backend(ABC):
    """Identity and relational operations consumed by the API.

    Implementations own every persistent entity; callers never hold
    authoritative state between requests.
    """

    async def aclose(self) -> None:
        """Release connections held by the backend."""

    # Identity

    @abstractmethod
    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: Dict[str, Any],
        redirect_to: Optional[str] = None
    ) -> AuthResult:
        """Create an identity and send the confirmation email.

        Args:
            email: Account email
            password: Plain password, hashed by the provider
            metadata: User metadata copied into the profile row by the provider
            redirect_to: Where the confirmation link should land

        Returns:
            The created user and, when confirmation is disabled, a session
        """
        pass

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AuthResult:
        """Exchange credentials for a session."""
        pass

    @abstractmethod
    async def sign_out(self, access_token: str) -> None:
        """Invalidate the session the access token belongs to."""
        pass

    @abstractmethod
    async def refresh_session(self, refresh_token: str) -> AuthResult:
        """Exchange a refresh token for a new session."""
        pass

    @abstractmethod
    async def get_user(self, access_token: str) -> AuthUser:
        """Verify an access token with the provider.

        Raises:
            IdentityError: If the token is invalid or expired
        """
        pass

    @abstractmethod
    async def reset_password(self, email: str, redirect_to: Optional[str] = None) -> None:
        """Trigger the password-reset email."""
        pass

    # Profiles

    @abstractmethod
    async def list_profiles(self) -> List[Dict[str, Any]]:
        """List all profiles ordered by rating, highest first."""
        pass

    @abstractmethod
    async def get_profile(self, profile_id: str) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    async def get_profile_by_username(self, username: str) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    async def update_profile(self, profile_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Update a profile.

        Returns:
            The updated row or None if no row matched
        """
        pass

    # Claims

    @abstractmethod
    async def find_claim(self, user_id: str, track_uri: str) -> Optional[Dict[str, Any]]:
        """Get the claim a user holds on a track, if any."""
        pass

    @abstractmethod
    async def count_claims(self, track_uri: str) -> int:
        """Count claims of a track across all users."""
        pass

    @abstractmethod
    async def next_claim_position(self, track_uri: str, rpc_name: str) -> int:
        """Reserve the next claim position for a track with a server-side atomic counter."""
        pass

    @abstractmethod
    async def insert_claim(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a claim and return the stored row."""
        pass

    @abstractmethod
    async def count_claims_at_position(self, track_uri: str, position: int) -> int:
        pass

    @abstractmethod
    async def list_claimed_tracks(self, offset: int, limit: int) -> List[Dict[str, Any]]:
        """Get one page of claims joined with the owner's profile.

        Rows carry the joined profile under ``profiles`` (or None).
        Only rows with ``claimedat`` set are returned, newest first.
        """
        pass

    @abstractmethod
    async def list_recent_claims(self, limit: int) -> List[Dict[str, Any]]:
        """Get the most recent claims, newest first."""
        pass

    # Likes

    @abstractmethod
    async def list_like_track_ids(self, track_ids: List[str]) -> List[Dict[str, Any]]:
        """One ``{"track_id": ...}`` row per like of any of the given tracks."""
        pass

    @abstractmethod
    async def list_comment_track_ids(self, track_ids: List[str]) -> List[Dict[str, Any]]:
        """One ``{"track_id": ...}`` row per comment on any of the given tracks."""
        pass

    @abstractmethod
    async def add_like(self, track_id: str, user_id: str) -> None:
        pass

    @abstractmethod
    async def remove_like(self, track_id: str, user_id: str) -> None:
        pass

    @abstractmethod
    async def list_user_liked_track_ids(self, user_id: str, track_ids: List[str]) -> List[str]:
        pass

    # Comments

    @abstractmethod
    async def list_comments(self, track_id: str) -> List[Dict[str, Any]]:
        """List comments on a track, newest first, with the author's profile."""
        pass

    @abstractmethod
    async def add_comment(self, track_id: str, user_id: str, comment_text: str) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def get_comment(self, comment_id: str) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    async def delete_comment(self, comment_id: str) -> None:
        pass
