"""Tests for JSONFormatter and the log context filter."""

from __future__ import annotations

import json
import logging
import sys

from opentelemetry import trace
from opentelemetry.trace import NonRecordingSpan, SpanContext, TraceFlags
import pytest

from gallery_service.infra.logging.context import (
    ContextInjectingFilter,
    clear_log_context,
    get_log_context,
    set_log_context,
)
from gallery_service.infra.logging.formatters import JSONFormatter


def _record(msg: str = "Object uploaded", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="gallery_service.infra.storage.s3",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture(autouse=True)
def _reset_context():
    clear_log_context()
    yield
    clear_log_context()


class TestJSONFormatter:
    def test_basic_fields(self):
        formatter = JSONFormatter(static={"service": "gallery-service"})

        data = json.loads(formatter.format(_record(key="1-cat.png")))

        assert data["level"] == "INFO"
        assert data["logger"] == "gallery_service.infra.storage.s3"
        assert data["message"] == "Object uploaded"
        assert data["service"] == "gallery-service"
        assert data["key"] == "1-cat.png"
        assert data["timestamp"].endswith("Z")
        assert "trace_id" not in data

    def test_exception_is_single_line(self):
        formatter = JSONFormatter()
        try:
            msg = "boom"
            raise ValueError(msg)
        except ValueError:
            record = _record()
            record.exc_info = sys.exc_info()

        output = formatter.format(record)

        assert "\n" not in output
        assert "ValueError: boom" in json.loads(output)["exception"]

    def test_non_serializable_extra(self):
        formatter = JSONFormatter()

        data = json.loads(formatter.format(_record(size=object())))

        assert data["size"].startswith("<object object")

    def test_trace_ids_from_active_span(self):
        formatter = JSONFormatter()
        context = SpanContext(
            trace_id=0x0AF7651916CD43DD8448EB211C80319C,
            span_id=0x00F067AA0BA902B7,
            is_remote=False,
            trace_flags=TraceFlags(TraceFlags.SAMPLED),
        )

        with trace.use_span(NonRecordingSpan(context)):
            data = json.loads(formatter.format(_record()))

        assert data["trace_id"] == format(context.trace_id, "032x")
        assert data["span_id"] == format(context.span_id, "016x")


class TestContextFilter:
    def test_context_injected(self):
        set_log_context(request_id="req-1")
        record = _record()

        assert ContextInjectingFilter().filter(record) is True
        assert record.request_id == "req-1"

    def test_existing_attributes_not_overwritten(self):
        set_log_context(key="from-context")
        record = _record(key="explicit")

        ContextInjectingFilter().filter(record)

        assert record.key == "explicit"

    def test_set_log_context_merges(self):
        set_log_context(request_id="req-1")
        set_log_context(key="1-cat.png")

        assert get_log_context() == {"request_id": "req-1", "key": "1-cat.png"}
