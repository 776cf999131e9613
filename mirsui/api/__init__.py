"""API module for the application."""

from fastapi import APIRouter
from mirsui.api.auth import router as auth_router
from mirsui.api.comments import router as comments_router
from mirsui.api.feed import router as feed_router
from mirsui.api.health import router as health_router
from mirsui.api.profiles import router as profiles_router
from mirsui.api.tracks import router as tracks_router
from mirsui.api.users import router as users_router

__all__ = [
    'auth_router',
    'comments_router',
    'feed_router',
    'health_router',
    'profiles_router',
    'tracks_router',
    'users_router',
    'api_router'
]

api_router = APIRouter()
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, prefix="/auth", tags=["auth"])
api_router.include_router(profiles_router, prefix="/profiles", tags=["profiles"])
api_router.include_router(feed_router, prefix="/feed", tags=["feed"])
api_router.include_router(tracks_router, prefix="/tracks", tags=["tracks"])
api_router.include_router(comments_router, prefix="/comments", tags=["comments"])
api_router.include_router(users_router, prefix="/user", tags=["user"])
