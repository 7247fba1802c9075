"""Tests for the JSON log formatter."""

import logging

import orjson

from repo_chat.core.logging import JsonFormatter


def test_json_formatter_copies_context_fields() -> None:
    record = logging.LogRecord("repo_chat.test", logging.WARNING, __file__, 1, "Gatherer %s failed", ("search",), None)
    record.ctx_gatherer = "search_results"
    record.unrelated = "dropped"

    payload = orjson.loads(JsonFormatter().format(record))
    assert payload["level"] == "WARNING"
    assert payload["message"] == "Gatherer search failed"
    assert payload["ctx_gatherer"] == "search_results"
    assert "unrelated" not in payload
