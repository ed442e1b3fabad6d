"""Health check endpoint."""

from fastapi import APIRouter

router = APIRouter()


@router.get("/health")
async def health():
    """Liveness probe; does not touch the store."""
    return {"status": "ok"}
