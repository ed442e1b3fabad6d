"""Scraped document repository backed by Supabase.

The Supabase client is synchronous; every call runs in a worker thread so the
event loop stays free while refresh tasks wait on the store.
"""

import asyncio
import math
from datetime import datetime, timezone
from typing import Any, Protocol

from supabase import Client

from src.constants import DEFAULT_PAGE_SIZE, SCRAPED_DATA_TABLE, SEARCH_RESULT_LIMIT
from src.db.query_executor import timed_store_call
from src.exceptions import PersistenceError
from src.models.document_models import StructuredDocument
from src.models.refresh_models import RefreshCandidate


class DocumentStore(Protocol):
    """Store collaborator used by acquisition and refresh."""

    async def insert(self, document: StructuredDocument) -> dict[str, Any]:
        """Persist a new record and return it."""
        ...

    async def find_older_than(
        self, cutoff: datetime, limit: int
    ) -> list[RefreshCandidate]:
        """Records last scraped strictly before ``cutoff``, oldest first."""
        ...

    async def update_by_url(self, url: str, document: StructuredDocument) -> None:
        """Overwrite the most recently created record for ``url``."""
        ...


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse a Postgres timestamp into an aware datetime (UTC if naive)."""
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def document_row(document: StructuredDocument) -> dict[str, Any]:
    """Column values for a scraped_data row."""
    wire = document.to_wire()
    return {
        "url": document.url,
        "title": document.title,
        "content": wire,
        "ai_analysis": wire.get("aiAnalysis"),
        "scraped_at": document.scraped_at.isoformat(),
        "method": document.method,
    }


class SupabaseDocumentStore:
    """DocumentStore implementation over the scraped_data table."""

    def __init__(self, client: Client, table: str = SCRAPED_DATA_TABLE):
        """
        Initialize the store.

        Args:
            client: Supabase client (constructed by the caller)
            table: Table holding scraped documents
        """
        self._client = client
        self._table_name = table

    def _table(self):
        return self._client.table(self._table_name)

    async def insert(self, document: StructuredDocument) -> dict[str, Any]:
        row = document_row(document)
        with timed_store_call("insert_document", url=document.url):
            result = await asyncio.to_thread(
                lambda: self._table().insert(row).execute()
            )
            if not result.data:
                raise PersistenceError("insert_document", "no row returned")
        return result.data[0]

    async def find_older_than(
        self, cutoff: datetime, limit: int
    ) -> list[RefreshCandidate]:
        with timed_store_call(
            "find_older_than", cutoff=cutoff.isoformat(), limit=limit
        ):
            result = await asyncio.to_thread(
                lambda: self._table()
                .select("url, scraped_at")
                .lt("scraped_at", cutoff.isoformat())
                .order("scraped_at")
                .limit(limit)
                .execute()
            )
        return [
            RefreshCandidate(
                url=row["url"], last_scraped_at=parse_timestamp(row["scraped_at"])
            )
            for row in result.data or []
        ]

    async def update_by_url(self, url: str, document: StructuredDocument) -> None:
        row = document_row(document)
        # The record stays keyed by the URL it was stored under, even after a redirect
        row.pop("url")
        row["updated_at"] = datetime.now(timezone.utc).isoformat()

        with timed_store_call("update_by_url", url=url):
            latest = await asyncio.to_thread(
                lambda: self._table()
                .select("id")
                .eq("url", url)
                .order("created_at", desc=True)
                .limit(1)
                .execute()
            )
            if not latest.data:
                raise PersistenceError("update_by_url", f"no record for {url}")
            record_id = latest.data[0]["id"]
            await asyncio.to_thread(
                lambda: self._table().update(row).eq("id", record_id).execute()
            )

    async def list_documents(
        self, page: int = 1, limit: int = DEFAULT_PAGE_SIZE
    ) -> dict[str, Any]:
        """Newest-first page of stored documents with pagination metadata."""
        page = max(page, 1)
        limit = max(limit, 1)
        start = (page - 1) * limit
        end = start + limit - 1

        with timed_store_call("list_documents", page=page, limit=limit):
            result = await asyncio.to_thread(
                lambda: self._table()
                .select("*", count="exact")
                .order("created_at", desc=True)
                .range(start, end)
                .execute()
            )
        total = result.count or 0
        return {
            "data": result.data or [],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "totalPages": math.ceil(total / limit),
            },
        }

    async def get_document(self, record_id: str) -> dict[str, Any] | None:
        with timed_store_call("get_document", record_id=record_id):
            result = await asyncio.to_thread(
                lambda: self._table().select("*").eq("id", record_id).limit(1).execute()
            )
        return result.data[0] if result.data else None

    async def get_documents_by_url(self, url: str) -> list[dict[str, Any]]:
        with timed_store_call("get_documents_by_url", url=url):
            result = await asyncio.to_thread(
                lambda: self._table()
                .select("*")
                .eq("url", url)
                .order("created_at", desc=True)
                .execute()
            )
        return result.data or []

    async def search_documents(self, query: str) -> list[dict[str, Any]]:
        """Case-insensitive match on title or URL."""
        # Commas and parentheses would break the PostgREST or-filter syntax
        term = "".join(char for char in query if char not in ",()").strip()
        if not term:
            return []
        with timed_store_call("search_documents", query=term):
            result = await asyncio.to_thread(
                lambda: self._table()
                .select("*")
                .or_(f"title.ilike.%{term}%,url.ilike.%{term}%")
                .order("created_at", desc=True)
                .limit(SEARCH_RESULT_LIMIT)
                .execute()
            )
        return result.data or []

    async def delete_document(self, record_id: str) -> None:
        with timed_store_call("delete_document", record_id=record_id):
            await asyncio.to_thread(
                lambda: self._table().delete().eq("id", record_id).execute()
            )

    async def get_statistics(self) -> dict[str, Any]:
        """Total records, distinct URLs and the newest record timestamp."""
        with timed_store_call("get_statistics"):
            total = await asyncio.to_thread(
                lambda: self._table().select("id", count="exact").limit(1).execute()
            )
            recent = await asyncio.to_thread(
                lambda: self._table()
                .select("created_at")
                .order("created_at", desc=True)
                .limit(1)
                .execute()
            )
            urls = await asyncio.to_thread(
                lambda: self._table().select("url").execute()
            )
        return {
            "totalScraped": total.count or 0,
            "uniqueUrls": len({row["url"] for row in urls.data or []}),
            "lastScraped": recent.data[0]["created_at"] if recent.data else None,
        }
