"""Read and delete endpoints over stored documents."""

from fastapi import APIRouter, Depends, HTTPException, Query

from src.api.dependencies import get_content_engine
from src.constants import DEFAULT_PAGE_SIZE
from src.services.engine import ContentEngine

router = APIRouter()


@router.get("")
async def list_data(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=100),
    engine: ContentEngine = Depends(get_content_engine),
):
    result = await engine.store.list_documents(page, limit)
    return {"success": True, **result}


@router.get("/stats")
async def statistics(engine: ContentEngine = Depends(get_content_engine)):
    stats = await engine.store.get_statistics()
    return {"success": True, "data": stats}


@router.get("/search")
async def search(
    q: str = Query(..., min_length=1),
    engine: ContentEngine = Depends(get_content_engine),
):
    """Case-insensitive search over titles and URLs."""
    data = await engine.store.search_documents(q)
    return {"success": True, "count": len(data), "data": data}


@router.get("/by-url")
async def by_url(
    url: str = Query(..., min_length=1),
    engine: ContentEngine = Depends(get_content_engine),
):
    """Every stored record for one URL, newest first."""
    data = await engine.store.get_documents_by_url(url)
    return {"success": True, "count": len(data), "data": data}


@router.get("/{record_id}")
async def get_data(record_id: str, engine: ContentEngine = Depends(get_content_engine)):
    record = await engine.store.get_document(record_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Data not found")
    return {"success": True, "data": record}


@router.delete("/{record_id}")
async def delete_data(
    record_id: str, engine: ContentEngine = Depends(get_content_engine)
):
    await engine.store.delete_document(record_id)
    return {"success": True, "message": "Data deleted successfully"}
