"""Supabase implementation of the backend interface."""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from supabase import (
    AsyncClient,
    AsyncClientOptions,
    AuthApiError,
    AuthError,
    PostgrestAPIError,
    acreate_client,
)

from mirsui.schemas.auth import AuthResult, AuthSession, AuthUser
from mirsui.storage.base import Backend, BackendError, IdentityError

logger = logging.getLogger(__name__)

PROFILES_TABLE = "profiles"
TRACKS_TABLE = "tracks"
LIKES_TABLE = "track_likes"
COMMENTS_TABLE = "track_comments"

OWNER_PROFILE_SELECT = "*, profiles(username, display_name, avatar_url)"


def _session_free_options() -> AsyncClientOptions:
    return AsyncClientOptions(auto_refresh_token=False, persist_session=False)


def to_auth_user(user: Any) -> Optional[AuthUser]:
    if user is None:
        return None
    confirmed = getattr(user, "email_confirmed_at", None)
    return AuthUser(
        id=str(user.id),
        email=getattr(user, "email", None),
        user_metadata=dict(getattr(user, "user_metadata", None) or {}),
        email_confirmed_at=confirmed.isoformat() if hasattr(confirmed, "isoformat") else confirmed,
    )


def to_auth_session(session: Any) -> Optional[AuthSession]:
    if session is None:
        return None
    return AuthSession(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_in=getattr(session, "expires_in", None),
        expires_at=getattr(session, "expires_at", None),
        token_type=getattr(session, "token_type", None) or "bearer",
    )


def to_auth_result(response: Any) -> AuthResult:
    return AuthResult(
        user=to_auth_user(getattr(response, "user", None)),
        session=to_auth_session(getattr(response, "session", None)),
    )


class SupabaseBackend(Backend):
    """Backend backed by Supabase Auth and PostgREST.

    ``client`` is the shared data client. Identity calls that create a
    session go through ``auth_client``, a separate session-free client, so
    one user's session never becomes the shared client's credentials.
    """

    def __init__(self, client: AsyncClient, auth_client: Optional[AsyncClient] = None):
        self.client = client
        self.auth_client = auth_client or client

    @classmethod
    async def connect(
        cls,
        url: str,
        key: str,
        service_role_key: Optional[str] = None
    ) -> "SupabaseBackend":
        """Create the shared client and the auth client.

        The shared client uses the service role key when one is configured;
        the auth client always uses the public key.
        """
        if not url or not key:
            raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set")

        client = await acreate_client(url, service_role_key or key, options=_session_free_options())
        auth_client = await acreate_client(url, key, options=_session_free_options())

        logger.info(f"Connected Supabase client for {url}")
        return cls(client, auth_client)

    async def aclose(self) -> None:
        clients = [self.client]
        if self.auth_client is not self.client:
            clients.append(self.auth_client)
        for client in clients:
            await client.auth.close()
            await client.postgrest.aclose()
        logger.info("Supabase connections closed")

    async def _call_auth(self, action: str, call: Callable[[], Awaitable[Any]]) -> Any:
        try:
            return await call()
        except AuthApiError as e:
            logger.info(f"Auth provider rejected {action}: {e.message}")
            raise IdentityError(e.message, getattr(e, "status", None)) from e
        except AuthError as e:
            raise BackendError(f"{action} failed: {e.message}") from e

    async def _execute(self, action: str, query: Any) -> Any:
        try:
            return await query.execute()
        except PostgrestAPIError as e:
            raise BackendError(f"{action} failed: {e.message}") from e

    # Identity

    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: Dict[str, Any],
        redirect_to: Optional[str] = None
    ) -> AuthResult:
        options: Dict[str, Any] = {"data": metadata}
        if redirect_to:
            options["email_redirect_to"] = redirect_to
        response = await self._call_auth(
            "sign up",
            lambda: self.auth_client.auth.sign_up({"email": email, "password": password, "options": options})
        )
        return to_auth_result(response)

    async def sign_in(self, email: str, password: str) -> AuthResult:
        response = await self._call_auth(
            "sign in",
            lambda: self.auth_client.auth.sign_in_with_password({"email": email, "password": password})
        )
        return to_auth_result(response)

    async def sign_out(self, access_token: str) -> None:
        await self._call_auth("sign out", lambda: self.client.auth.admin.sign_out(access_token))

    async def refresh_session(self, refresh_token: str) -> AuthResult:
        response = await self._call_auth(
            "refresh session",
            lambda: self.auth_client.auth.refresh_session(refresh_token)
        )
        return to_auth_result(response)

    async def get_user(self, access_token: str) -> AuthUser:
        response = await self._call_auth("get user", lambda: self.client.auth.get_user(access_token))
        user = to_auth_user(getattr(response, "user", None))
        if user is None:
            raise IdentityError("Invalid or expired token", 401)
        return user

    async def reset_password(self, email: str, redirect_to: Optional[str] = None) -> None:
        options = {"redirect_to": redirect_to} if redirect_to else {}
        await self._call_auth(
            "reset password",
            lambda: self.client.auth.reset_password_for_email(email, options)
        )

    # Profiles

    async def list_profiles(self) -> List[Dict[str, Any]]:
        response = await self._execute(
            "list profiles",
            self.client.table(PROFILES_TABLE).select("*").order("rating", desc=True)
        )
        return response.data or []

    async def get_profile(self, profile_id: str) -> Optional[Dict[str, Any]]:
        response = await self._execute(
            "get profile",
            self.client.table(PROFILES_TABLE).select("*").eq("id", profile_id).limit(1)
        )
        return response.data[0] if response.data else None

    async def get_profile_by_username(self, username: str) -> Optional[Dict[str, Any]]:
        response = await self._execute(
            "get profile by username",
            self.client.table(PROFILES_TABLE).select("*").eq("username", username).limit(1)
        )
        return response.data[0] if response.data else None

    async def update_profile(self, profile_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        response = await self._execute(
            "update profile",
            self.client.table(PROFILES_TABLE).update(fields).eq("id", profile_id)
        )
        return response.data[0] if response.data else None

    # Claims

    async def find_claim(self, user_id: str, track_uri: str) -> Optional[Dict[str, Any]]:
        response = await self._execute(
            "find claim",
            self.client.table(TRACKS_TABLE)
            .select("id, position, youtube_url, discover_rating, claimedat")
            .eq("user_id", user_id)
            .eq("track_uri", track_uri)
            .limit(1)
        )
        return response.data[0] if response.data else None

    async def count_claims(self, track_uri: str) -> int:
        response = await self._execute(
            "count claims",
            self.client.table(TRACKS_TABLE).select("id", count="exact").eq("track_uri", track_uri)
        )
        return response.count or 0

    async def next_claim_position(self, track_uri: str, rpc_name: str) -> int:
        response = await self._execute(
            "reserve claim position",
            self.client.rpc(rpc_name, {"p_track_uri": track_uri})
        )
        if response.data is None:
            raise BackendError(f"{rpc_name} returned no position")
        return int(response.data)

    async def insert_claim(self, row: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._execute("insert claim", self.client.table(TRACKS_TABLE).insert(row))
        if not response.data:
            raise BackendError("insert claim returned no row")
        return response.data[0]

    async def count_claims_at_position(self, track_uri: str, position: int) -> int:
        response = await self._execute(
            "count claims at position",
            self.client.table(TRACKS_TABLE)
            .select("id", count="exact")
            .eq("track_uri", track_uri)
            .eq("position", position)
        )
        return response.count or 0

    async def list_claimed_tracks(self, offset: int, limit: int) -> List[Dict[str, Any]]:
        response = await self._execute(
            "list claimed tracks",
            self.client.table(TRACKS_TABLE)
            .select(OWNER_PROFILE_SELECT)
            .not_.is_("claimedat", "null")
            .order("claimedat", desc=True)
            .range(offset, offset + limit - 1)
        )
        return response.data or []

    async def list_recent_claims(self, limit: int) -> List[Dict[str, Any]]:
        response = await self._execute(
            "list recent claims",
            self.client.table(TRACKS_TABLE)
            .select(OWNER_PROFILE_SELECT)
            .not_.is_("claimedat", "null")
            .order("claimedat", desc=True)
            .limit(limit)
        )
        return response.data or []

    # Likes

    async def list_like_track_ids(self, track_ids: List[str]) -> List[Dict[str, Any]]:
        response = await self._execute(
            "list likes",
            self.client.table(LIKES_TABLE).select("track_id").in_("track_id", track_ids)
        )
        return response.data or []

    async def list_comment_track_ids(self, track_ids: List[str]) -> List[Dict[str, Any]]:
        response = await self._execute(
            "list comment counts",
            self.client.table(COMMENTS_TABLE).select("track_id").in_("track_id", track_ids)
        )
        return response.data or []

    async def add_like(self, track_id: str, user_id: str) -> None:
        await self._execute(
            "add like",
            self.client.table(LIKES_TABLE).insert({"track_id": track_id, "user_id": user_id})
        )

    async def remove_like(self, track_id: str, user_id: str) -> None:
        await self._execute(
            "remove like",
            self.client.table(LIKES_TABLE).delete().eq("track_id", track_id).eq("user_id", user_id)
        )

    async def list_user_liked_track_ids(self, user_id: str, track_ids: List[str]) -> List[str]:
        response = await self._execute(
            "list user likes",
            self.client.table(LIKES_TABLE)
            .select("track_id")
            .eq("user_id", user_id)
            .in_("track_id", track_ids)
        )
        return [row["track_id"] for row in response.data or []]

    # Comments

    async def list_comments(self, track_id: str) -> List[Dict[str, Any]]:
        response = await self._execute(
            "list comments",
            self.client.table(COMMENTS_TABLE)
            .select(OWNER_PROFILE_SELECT)
            .eq("track_id", track_id)
            .order("created_at", desc=True)
        )
        return response.data or []

    async def add_comment(self, track_id: str, user_id: str, comment_text: str) -> Dict[str, Any]:
        response = await self._execute(
            "add comment",
            self.client.table(COMMENTS_TABLE).insert({
                "track_id": track_id,
                "user_id": user_id,
                "comment_text": comment_text,
            })
        )
        if not response.data:
            raise BackendError("add comment returned no row")
        return response.data[0]

    async def get_comment(self, comment_id: str) -> Optional[Dict[str, Any]]:
        response = await self._execute(
            "get comment",
            self.client.table(COMMENTS_TABLE).select("id, user_id, track_id").eq("id", comment_id).limit(1)
        )
        return response.data[0] if response.data else None

    async def delete_comment(self, comment_id: str) -> None:
        await self._execute(
            "delete comment",
            self.client.table(COMMENTS_TABLE).delete().eq("id", comment_id)
        )
