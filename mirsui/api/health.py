from datetime import datetime, timezone
from fastapi import APIRouter

router = APIRouter()


def _status() -> dict:
    return {
        "status": "ok",
        "message": "Mirsui API is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/")
async def root():
    return _status()


@router.get("/health")
async def health_check():
    return _status()
