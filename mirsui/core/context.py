"""Per-application context handed to routes through FastAPI dependencies."""

import logging
from dataclasses import dataclass, field
from typing import Optional

from fastapi import Request

from mirsui.core.config import Settings
from mirsui.storage.base import Backend
from mirsui.storage.supabase_backend import SupabaseBackend
from mirsui.utils.logging import setup_logger
from mirsui.utils.rate_limiter import RateLimitRegistry


@dataclass
class AppContext:
    settings: Settings
    backend: Backend
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("mirsui"))
    rate_limits: Optional[RateLimitRegistry] = None

    def __post_init__(self) -> None:
        if self.rate_limits is None:
            self.rate_limits = RateLimitRegistry.from_settings(self.settings)


async def build_context(settings: Settings) -> AppContext:
    """Build the production context: configured logger and a connected Supabase backend."""
    logger = setup_logger("mirsui", settings.LOG_LEVEL, settings.LOG_DIR)
    backend = await SupabaseBackend.connect(
        settings.SUPABASE_URL,
        settings.SUPABASE_KEY,
        settings.SUPABASE_SERVICE_ROLE_KEY
    )
    return AppContext(settings=settings, backend=backend, logger=logger)


def get_context(request: Request) -> AppContext:
    context = getattr(request.app.state, "context", None)
    if context is None:
        raise RuntimeError("Application context has not been initialised")
    return context


def get_backend(request: Request) -> Backend:
    return get_context(request).backend


def get_app_settings(request: Request) -> Settings:
    return get_context(request).settings
