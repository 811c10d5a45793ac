"""Tests for request size limit middleware."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from gallery_service.app.middleware.size_limit import RequestSizeLimitMiddleware


def _scope(content_length: bytes | None) -> dict:
    headers = [(b"content-type", b"multipart/form-data; boundary=x")]
    if content_length is not None:
        headers.append((b"content-length", content_length))
    return {
        "type": "http",
        "method": "POST",
        "path": "/upload",
        "query_string": b"",
        "headers": headers,
        "app": SimpleNamespace(title="Bucket Gallery"),
    }


async def _receive():
    return {"type": "http.request", "body": b"", "more_body": False}


@pytest.mark.asyncio
async def test_size_limit_blocks_large_requests():
    send_messages = []

    async def send(message):
        send_messages.append(message)

    async def dummy_app(scope, receive, send):  # pragma: no cover - should not be reached
        msg = "App should not be called for oversized requests"
        raise AssertionError(msg)

    middleware = RequestSizeLimitMiddleware(dummy_app, max_size=5)

    await middleware(_scope(b"10"), _receive, send)

    start = next(msg for msg in send_messages if msg["type"] == "http.response.start")
    assert start["status"] == 413
    assert (b"content-type", b"text/html; charset=utf-8") in start["headers"]
    body = b"".join(msg.get("body", b"") for msg in send_messages if msg["type"] == "http.response.body")
    assert b"Request size 10 exceeds maximum 5 bytes." in body


@pytest.mark.asyncio
@pytest.mark.parametrize("content_length", [b"5", b"not-a-number", None])
async def test_size_limit_passes_through(content_length):
    called = []

    async def send(message):  # pragma: no cover - send not used for pass through
        called.append(message)

    async def dummy_app(scope, receive, send):
        called.append(("app", scope["type"]))

    middleware = RequestSizeLimitMiddleware(dummy_app, max_size=5)

    await middleware(_scope(content_length), _receive, send)

    assert called == [("app", "http")]


@pytest.mark.asyncio
async def test_size_limit_ignores_non_http_scopes():
    called = []

    async def dummy_app(scope, receive, send):
        called.append(scope["type"])

    middleware = RequestSizeLimitMiddleware(dummy_app, max_size=1)

    await middleware({"type": "lifespan"}, _receive, None)

    assert called == ["lifespan"]
