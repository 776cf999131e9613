"""Shared route dependencies."""

from fastapi import Depends, HTTPException, Request, status

from mirsui.core.context import AppContext, get_context
from mirsui.services.claim_service import ClaimService
from mirsui.services.feed_service import FeedService


def get_claim_service(context: AppContext = Depends(get_context)) -> ClaimService:
    return ClaimService(
        context.backend,
        atomic_position=context.settings.ATOMIC_CLAIM_POSITION,
        position_rpc=context.settings.CLAIM_POSITION_RPC
    )


def get_feed_service(context: AppContext = Depends(get_context)) -> FeedService:
    return FeedService(context.backend, recent_overfetch=context.settings.RECENT_CLAIMS_OVERFETCH)


def client_address(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def rate_limit(name: str):
    """Dependency enforcing the named per-client limiter (signup, login, password_reset)."""
    async def dependency(request: Request, context: AppContext = Depends(get_context)) -> None:
        allowed, retry_after = await context.rate_limits.check(name, client_address(request))
        if not allowed:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests, please try again later",
                headers={"Retry-After": str(retry_after)},
            )
    return dependency
