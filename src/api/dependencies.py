"""Request-scoped access to the content engine built at startup."""

from fastapi import HTTPException, Request

from src.services.engine import ContentEngine


def get_content_engine(request: Request) -> ContentEngine:
    """Return the engine stored on app state by the lifespan handler."""
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="Content engine is not ready")
    return engine
