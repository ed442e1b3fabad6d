"""Store call execution utilities.

Times and logs document store operations and converts driver failures into
PersistenceError so callers only deal with one error type.
"""

import time
from contextlib import contextmanager
from typing import Any, Generator

import logfire

from src.exceptions import PersistenceError


@contextmanager
def timed_store_call(
    operation_name: str,
    **log_context: Any,
) -> Generator[None, None, None]:
    """
    Context manager for timing and logging store operations.

    Logs the start of the operation, and on completion logs either success
    with elapsed time or error details. Any exception other than
    PersistenceError is re-raised wrapped in PersistenceError.

    Args:
        operation_name: Name of the store operation (e.g., "update_by_url")
        **log_context: Additional context to include in all log messages

    Example:
        with timed_store_call("insert_document", url=document.url):
            result = client.table("scraped_data").insert(row).execute()
    """
    start_time = time.time()

    logfire.info(
        f"Starting {operation_name}",
        operation=operation_name,
        **log_context,
    )

    try:
        yield
    except Exception as e:
        elapsed = time.time() - start_time
        logfire.error(
            f"{operation_name} failed",
            operation=operation_name,
            error=str(e),
            error_type=type(e).__name__,
            response_time_ms=elapsed * 1000,
            **log_context,
        )
        if isinstance(e, PersistenceError):
            raise
        raise PersistenceError(operation_name, str(e)) from e

    elapsed = time.time() - start_time
    logfire.info(
        f"{operation_name} completed",
        operation=operation_name,
        response_time_ms=elapsed * 1000,
        **log_context,
    )
