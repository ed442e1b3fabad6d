"""Tests for store call timing utilities."""

import time
from unittest.mock import patch

import pytest

from src.db.query_executor import timed_store_call
from src.exceptions import PersistenceError


class TestTimedStoreCall:
    """Tests for the timed_store_call context manager."""

    def test_successful_call_logs_start_and_completion(self):
        with patch("src.db.query_executor.logfire") as mock_logfire:
            with timed_store_call("insert_document", url="https://example.com/"):
                time.sleep(0.01)

            assert mock_logfire.info.call_count == 2

            start_call = mock_logfire.info.call_args_list[0]
            assert "Starting insert_document" in start_call[0][0]
            assert start_call[1]["operation"] == "insert_document"
            assert start_call[1]["url"] == "https://example.com/"

            completion_call = mock_logfire.info.call_args_list[1]
            assert "insert_document completed" in completion_call[0][0]
            assert completion_call[1]["response_time_ms"] > 0

    def test_driver_error_wrapped_in_persistence_error(self):
        with patch("src.db.query_executor.logfire") as mock_logfire:
            with pytest.raises(PersistenceError, match="update_by_url failed: timeout") as exc:
                with timed_store_call("update_by_url", url="https://example.com/"):
                    raise TimeoutError("timeout")

            assert exc.value.operation == "update_by_url"
            assert isinstance(exc.value.__cause__, TimeoutError)
            error_call = mock_logfire.error.call_args
            assert error_call[1]["error_type"] == "TimeoutError"
            assert "response_time_ms" in error_call[1]

    def test_persistence_error_not_double_wrapped(self):
        original = PersistenceError("insert_document", "no row returned")

        with patch("src.db.query_executor.logfire"):
            with pytest.raises(PersistenceError) as exc:
                with timed_store_call("insert_document"):
                    raise original

        assert exc.value is original
