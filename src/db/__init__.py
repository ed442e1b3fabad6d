"""Database client and repository layer."""

from src.db.query_executor import timed_store_call
from src.db.repository import DocumentStore, SupabaseDocumentStore

__all__ = [
    "timed_store_call",
    "DocumentStore",
    "SupabaseDocumentStore",
]
