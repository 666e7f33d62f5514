"""
tests/core/test_logger.py

Tests for the request-token log context.
"""

import asyncio
import logging

import pytest

from docpipe.core.logger import RequestTokenFilter, current_log_token, get_logger, log_context


def _record() -> logging.LogRecord:
    return logging.LogRecord("docpipe.test", logging.INFO, __file__, 1, "message", None, None)


class TestRequestTokenFilter:

    def test_placeholder_outside_a_conversion(self) -> None:
        record = _record()
        assert RequestTokenFilter().filter(record) is True
        assert record.token == "-"

    def test_token_stamped_inside_context(self) -> None:
        record = _record()
        with log_context("1700000000000-abcdef"):
            RequestTokenFilter().filter(record)
        assert record.token == "1700000000000-abcdef"

    def test_context_restored_after_nesting(self) -> None:
        with log_context("outer"):
            with log_context("inner"):
                assert current_log_token() == "inner"
            assert current_log_token() == "outer"
        assert current_log_token() == "-"

    def test_context_restored_after_error(self) -> None:
        with pytest.raises(RuntimeError):
            with log_context("doomed"):
                raise RuntimeError("boom")
        assert current_log_token() == "-"


class TestPropagation:

    @pytest.mark.asyncio
    async def test_token_follows_into_tasks_and_threads(self) -> None:
        async def in_task() -> str:
            return current_log_token()

        with log_context("abc"):
            from_task = await asyncio.create_task(in_task())
            from_thread = await asyncio.to_thread(current_log_token)

        assert from_task == "abc"
        assert from_thread == "abc"

    @pytest.mark.asyncio
    async def test_concurrent_contexts_do_not_leak(self) -> None:
        async def tagged(token: str) -> str:
            with log_context(token):
                await asyncio.sleep(0.01)
                return current_log_token()

        assert await asyncio.gather(tagged("a"), tagged("b")) == ["a", "b"]


def test_get_logger_returns_named_logger() -> None:
    assert get_logger("docpipe.scratch").name == "docpipe.scratch"
