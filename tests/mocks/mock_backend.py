from typing import Any, Dict, List, Optional
from datetime import datetime, timedelta, timezone
import itertools
import uuid

import jwt

from mirsui.schemas.auth import AuthResult, AuthSession, AuthUser
from mirsui.storage.base import Backend, BackendError, IdentityError

SIGNING_SECRET = "mock-backend-signing-secret-0123456789abcdef"


class MockServiceBase:
    """Base class for mock external services"""
    def __init__(self):
        self.calls: List[Dict[str, Any]] = []
        self.failures: Dict[str, Exception] = {}

    def record_call(self, method: str, *args, **kwargs):
        """Record service call for verification"""
        self.calls.append({
            'method': method,
            'args': args,
            'kwargs': kwargs,
            'timestamp': datetime.now()
        })
        failure = self.failures.get(method)
        if failure is not None:
            raise failure

    def fail(self, method: str, error: Exception):
        """Make every later call to ``method`` raise ``error``"""
        self.failures[method] = error

    def get_calls(self, method: str = None) -> List[Dict[str, Any]]:
        """Get recorded calls, optionally filtered by method"""
        if method:
            return [call for call in self.calls if call['method'] == method]
        return self.calls


class MockBackend(MockServiceBase, Backend):
    """In-memory stand-in for the Supabase project: auth users, tables and RPC."""

    def __init__(self):
        super().__init__()
        self.users: Dict[str, Dict[str, Any]] = {}
        self.access_tokens: Dict[str, str] = {}
        self.refresh_tokens: Dict[str, str] = {}
        self.profiles: Dict[str, Dict[str, Any]] = {}
        self.tracks: List[Dict[str, Any]] = []
        self.likes: List[Dict[str, Any]] = []
        self.comments: List[Dict[str, Any]] = []
        self.closed = False
        self._ids = itertools.count(1)
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    # Helpers for tests

    def _tick(self) -> str:
        self._clock += timedelta(seconds=1)
        return self._clock.isoformat()

    def _issue_session(self, user_id: str) -> AuthSession:
        access_token = jwt.encode(
            {"sub": user_id, "jti": uuid.uuid4().hex},
            SIGNING_SECRET,
            algorithm="HS256"
        )
        refresh_token = uuid.uuid4().hex
        self.access_tokens[access_token] = user_id
        self.refresh_tokens[refresh_token] = user_id
        return AuthSession(access_token=access_token, refresh_token=refresh_token, expires_in=3600)

    def _auth_user(self, user_id: str) -> AuthUser:
        user = self.users[user_id]
        return AuthUser(id=user_id, email=user["email"], user_metadata=user["metadata"])

    def create_user(
        self,
        email: str,
        password: str = "secret123",
        username: Optional[str] = None,
        points: int = 0,
        rating: float = 0
    ) -> Dict[str, Any]:
        """Register a confirmed user with a profile row and an active session."""
        user_id = str(uuid.uuid4())
        username = username or email.split("@")[0]
        self.users[user_id] = {
            "email": email,
            "password": password,
            "metadata": {"username": username, "display_name": username},
        }
        self.profiles[user_id] = {
            "id": user_id,
            "email": email,
            "username": username,
            "display_name": username.title(),
            "description": None,
            "avatar_url": f"https://cdn.example.com/{username}.png",
            "rating": rating,
            "points": points,
            "prophet_points": None,
        }
        session = self._issue_session(user_id)
        return {"id": user_id, "email": email, "access_token": session.access_token,
                "refresh_token": session.refresh_token}

    def seed_claim(self, **fields: Any) -> Dict[str, Any]:
        row = {
            "id": str(next(self._ids)),
            "track_uri": "spotify:track:seed",
            "track_title": "Seed",
            "artist_name": "Seeder",
            "user_id": None,
            "position": 1,
            "discover_rating": 0,
            "claimedat": self._tick(),
            "youtube_url": None,
        }
        row.update(fields)
        self.tracks.append(row)
        return row

    def _with_owner(self, row: Dict[str, Any]) -> Dict[str, Any]:
        profile = self.profiles.get(row.get("user_id"))
        joined = dict(row)
        joined["profiles"] = (
            {k: profile[k] for k in ("username", "display_name", "avatar_url")}
            if profile else None
        )
        return joined

    def _claimed_newest_first(self) -> List[Dict[str, Any]]:
        indexed = [(i, row) for i, row in enumerate(self.tracks) if row.get("claimedat")]
        indexed.sort(key=lambda pair: (pair[1]["claimedat"], pair[0]), reverse=True)
        return [row for _, row in indexed]

    async def aclose(self):
        self.record_call('aclose')
        self.closed = True

    # Identity

    async def sign_up(self, email, password, metadata, redirect_to=None) -> AuthResult:
        self.record_call('sign_up', email, metadata, redirect_to=redirect_to)
        if any(u["email"] == email for u in self.users.values()):
            raise IdentityError("User already registered", 422)
        user_id = str(uuid.uuid4())
        self.users[user_id] = {"email": email, "password": password, "metadata": dict(metadata)}
        # Stands in for the database trigger that creates profile rows
        self.profiles[user_id] = {
            "id": user_id,
            "email": email,
            "username": metadata.get("username"),
            "display_name": metadata.get("display_name"),
            "description": None,
            "avatar_url": None,
            "rating": 0,
            "points": 0,
            "prophet_points": None,
        }
        return AuthResult(user=self._auth_user(user_id), session=None)

    async def sign_in(self, email, password) -> AuthResult:
        self.record_call('sign_in', email)
        for user_id, user in self.users.items():
            if user["email"] == email and user["password"] == password:
                return AuthResult(user=self._auth_user(user_id), session=self._issue_session(user_id))
        raise IdentityError("Invalid login credentials", 400)

    async def sign_out(self, access_token) -> None:
        self.record_call('sign_out', access_token)
        self.access_tokens.pop(access_token, None)

    async def refresh_session(self, refresh_token) -> AuthResult:
        self.record_call('refresh_session', refresh_token)
        user_id = self.refresh_tokens.pop(refresh_token, None)
        if user_id is None:
            raise IdentityError("Invalid Refresh Token", 400)
        return AuthResult(user=self._auth_user(user_id), session=self._issue_session(user_id))

    async def get_user(self, access_token) -> AuthUser:
        self.record_call('get_user', access_token)
        user_id = self.access_tokens.get(access_token)
        if user_id is None:
            raise IdentityError("invalid JWT", 401)
        return self._auth_user(user_id)

    async def reset_password(self, email, redirect_to=None) -> None:
        self.record_call('reset_password', email, redirect_to=redirect_to)

    # Profiles

    async def list_profiles(self):
        self.record_call('list_profiles')
        return sorted(self.profiles.values(), key=lambda p: p["rating"], reverse=True)

    async def get_profile(self, profile_id):
        self.record_call('get_profile', profile_id)
        profile = self.profiles.get(profile_id)
        return dict(profile) if profile else None

    async def get_profile_by_username(self, username):
        self.record_call('get_profile_by_username', username)
        for profile in self.profiles.values():
            if profile["username"] == username:
                return dict(profile)
        return None

    async def update_profile(self, profile_id, fields):
        self.record_call('update_profile', profile_id, fields)
        profile = self.profiles.get(profile_id)
        if profile is None:
            return None
        profile.update(fields)
        return dict(profile)

    # Claims

    async def find_claim(self, user_id, track_uri):
        self.record_call('find_claim', user_id, track_uri)
        for row in self.tracks:
            if row["user_id"] == user_id and row["track_uri"] == track_uri:
                return dict(row)
        return None

    async def count_claims(self, track_uri):
        self.record_call('count_claims', track_uri)
        return sum(1 for row in self.tracks if row["track_uri"] == track_uri)

    async def next_claim_position(self, track_uri, rpc_name):
        self.record_call('next_claim_position', track_uri, rpc_name)
        return sum(1 for row in self.tracks if row["track_uri"] == track_uri) + 1

    async def insert_claim(self, row):
        self.record_call('insert_claim', row)
        stored = dict(row)
        stored["id"] = str(next(self._ids))
        stored.setdefault("youtube_url", None)
        self.tracks.append(stored)
        return dict(stored)

    async def count_claims_at_position(self, track_uri, position):
        self.record_call('count_claims_at_position', track_uri, position)
        return sum(
            1 for row in self.tracks
            if row["track_uri"] == track_uri and row["position"] == position
        )

    async def list_claimed_tracks(self, offset, limit):
        self.record_call('list_claimed_tracks', offset, limit)
        rows = self._claimed_newest_first()[offset:offset + limit]
        return [self._with_owner(row) for row in rows]

    async def list_recent_claims(self, limit):
        self.record_call('list_recent_claims', limit)
        return [self._with_owner(row) for row in self._claimed_newest_first()[:limit]]

    # Likes

    async def list_like_track_ids(self, track_ids):
        self.record_call('list_like_track_ids', track_ids)
        return [{"track_id": like["track_id"]} for like in self.likes if like["track_id"] in track_ids]

    async def list_comment_track_ids(self, track_ids):
        self.record_call('list_comment_track_ids', track_ids)
        return [{"track_id": c["track_id"]} for c in self.comments if c["track_id"] in track_ids]

    async def add_like(self, track_id, user_id):
        self.record_call('add_like', track_id, user_id)
        if any(l["track_id"] == track_id and l["user_id"] == user_id for l in self.likes):
            raise BackendError("duplicate key value violates unique constraint")
        self.likes.append({"track_id": track_id, "user_id": user_id})

    async def remove_like(self, track_id, user_id):
        self.record_call('remove_like', track_id, user_id)
        self.likes = [
            l for l in self.likes
            if not (l["track_id"] == track_id and l["user_id"] == user_id)
        ]

    async def list_user_liked_track_ids(self, user_id, track_ids):
        self.record_call('list_user_liked_track_ids', user_id, track_ids)
        return [
            l["track_id"] for l in self.likes
            if l["user_id"] == user_id and l["track_id"] in track_ids
        ]

    # Comments

    async def list_comments(self, track_id):
        self.record_call('list_comments', track_id)
        rows = [c for c in self.comments if c["track_id"] == track_id]
        rows.sort(key=lambda c: c["created_at"], reverse=True)
        return [self._with_owner(c) for c in rows]

    async def add_comment(self, track_id, user_id, comment_text):
        self.record_call('add_comment', track_id, user_id, comment_text)
        comment = {
            "id": str(next(self._ids)),
            "track_id": track_id,
            "user_id": user_id,
            "comment_text": comment_text,
            "created_at": self._tick(),
        }
        self.comments.append(comment)
        return dict(comment)

    async def get_comment(self, comment_id):
        self.record_call('get_comment', comment_id)
        for c in self.comments:
            if c["id"] == comment_id:
                return dict(c)
        return None

    async def delete_comment(self, comment_id):
        self.record_call('delete_comment', comment_id)
        self.comments = [c for c in self.comments if c["id"] != comment_id]
