#!/usr/bin/env python
"""Tests for the GraphQL request executor and aiohttp transport.

Covers:
- Request body and headers sent to the transport
- 200 responses return the `data` field, other fields ignored
- Non-200 responses raise HttpError with status and body
- Invalid JSON / missing `data` raise DecodeError
- Transport connectivity errors propagate unchanged
- AiohttpTransport turns refused connections into ConnectivityError
- Undecodable bodies still classify as HttpError / DecodeError
- Truncated bodies and malformed URLs raise typed errors

Run with: pytest tests/test_executor.py -v
"""

import json
import sys
from pathlib import Path
from unittest.mock import MagicMock

import aiohttp
import pytest
from aiohttp import web
from aiohttp import test_utils

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from appsync.errors import (
    ConnectivityError,
    DecodeError,
    ErrorType,
    HttpError,
    InvalidRequestError,
)
from appsync.models.request import QueryRequest
from appsync.services.executor import RequestExecutor
from appsync.services.transport import AiohttpTransport, HttpResponse

ENDPOINT = "https://example.appsync-api.us-east-1.amazonaws.com/graphql"


class FakeTransport:
    """Records POSTs and replays a canned response or error."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    async def post(self, url, body, headers):
        self.calls.append((url, body, dict(headers)))
        if self.error is not None:
            raise self.error
        return self.response


def make_request(**variables):
    return QueryRequest(
        endpoint=ENDPOINT,
        query="query Get($id: ID!) { getPost(id: $id) { id title } }",
        variables=variables,
        access_token="token-abc",
    )


# === Test 1: Wire format ===

@pytest.mark.asyncio
async def test_posts_json_body_with_auth_headers():
    """The executor should POST {query, variables} with auth and JSON headers."""
    transport = FakeTransport(HttpResponse(200, json.dumps({"data": {"getPost": None}})))
    executor = RequestExecutor(transport)
    request = make_request(id="42")

    await executor.send(request)

    assert len(transport.calls) == 1
    url, body, headers = transport.calls[0]
    assert url == ENDPOINT
    assert json.loads(body) == {"query": request.query, "variables": {"id": "42"}}
    assert headers["Authorization"] == "token-abc"
    assert headers["Content-Type"] == "application/json"


# === Test 2: Success ===

@pytest.mark.asyncio
async def test_returns_data_field_and_ignores_errors():
    """Only `data` is returned; an `errors` array is not interpreted."""
    payload = {
        "data": {"getPost": {"id": "42", "title": "Hello"}},
        "errors": [{"message": "partial failure"}],
    }
    executor = RequestExecutor(FakeTransport(HttpResponse(200, json.dumps(payload))))

    data = await executor.send(make_request(id="42"))

    assert data == {"getPost": {"id": "42", "title": "Hello"}}


@pytest.mark.asyncio
async def test_null_data_is_returned():
    executor = RequestExecutor(FakeTransport(HttpResponse(200, '{"data": null}')))
    assert await executor.send(make_request()) is None


# === Test 3: HTTP status errors ===

@pytest.mark.asyncio
@pytest.mark.parametrize("status", [400, 401, 500, 503])
async def test_non_200_raises_http_error(status):
    body = '{"errors": [{"message": "bad"}]}'
    executor = RequestExecutor(FakeTransport(HttpResponse(status, body)))

    with pytest.raises(HttpError) as exc_info:
        await executor.send(make_request())

    error = exc_info.value
    assert error.status == status
    assert error.body == body
    assert error.error_type == ErrorType.HTTP_ERROR
    assert str(status) in str(error)


# === Test 4: Decode errors ===

@pytest.mark.asyncio
@pytest.mark.parametrize("body", [
    "<html>gateway</html>",
    "[1, 2, 3]",
    '{"errors": [{"message": "no data"}]}',
])
async def test_bad_body_raises_decode_error(body):
    executor = RequestExecutor(FakeTransport(HttpResponse(200, body)))

    with pytest.raises(DecodeError):
        await executor.send(make_request())


# === Test 5: Connectivity errors pass through ===

@pytest.mark.asyncio
async def test_connectivity_error_propagates():
    error = ConnectivityError("no route to host")
    executor = RequestExecutor(FakeTransport(error=error))

    with pytest.raises(ConnectivityError) as exc_info:
        await executor.send(make_request())

    assert exc_info.value is error


# === Test 6: aiohttp transport classification ===

@pytest.mark.asyncio
async def test_aiohttp_transport_connection_refused():
    """A refused connection should become a ConnectivityError."""
    transport = AiohttpTransport()

    with pytest.raises(ConnectivityError) as exc_info:
        await transport.post("http://127.0.0.1:1/graphql", "{}", {})

    assert exc_info.value.error_type == ErrorType.NETWORK_ERROR
    assert exc_info.value.original_error is not None


def test_default_transport_is_aiohttp():
    assert isinstance(RequestExecutor().transport, AiohttpTransport)


# === Test 7: Bodies that are not valid UTF-8 ===

async def start_server(status, body):
    async def handler(request):
        return web.Response(status=status, body=body)

    app = web.Application()
    app.router.add_post("/graphql", handler)
    server = test_utils.TestServer(app)
    await server.start_server()
    return server


@pytest.mark.asyncio
async def test_undecodable_error_body_raises_http_error():
    """A 500 with invalid UTF-8 bytes is still an HttpError."""
    server = await start_server(500, b"\xff\xfe\xfa bad bytes")
    try:
        request = QueryRequest(str(server.make_url("/graphql")), "query { a }")
        with pytest.raises(HttpError) as exc_info:
            await RequestExecutor().send(request)
    finally:
        await server.close()

    assert exc_info.value.status == 500
    assert "bad bytes" in exc_info.value.body


@pytest.mark.asyncio
async def test_undecodable_success_body_raises_decode_error():
    """A 200 with invalid UTF-8 bytes is a DecodeError."""
    server = await start_server(200, b"\xff\xfe")
    try:
        request = QueryRequest(str(server.make_url("/graphql")), "query { a }")
        with pytest.raises(DecodeError):
            await RequestExecutor().send(request)
    finally:
        await server.close()


@pytest.mark.asyncio
async def test_aiohttp_transport_reads_real_response():
    server = await start_server(200, b'{"data": {"a": "\xc3\xa9"}}')
    try:
        request = QueryRequest(str(server.make_url("/graphql")), "query { a }")
        data = await RequestExecutor().send(request)
    finally:
        await server.close()

    assert data == {"a": "é"}


# === Test 8: Truncated bodies and malformed URLs ===

@pytest.mark.asyncio
async def test_truncated_body_raises_decode_error():
    session = MagicMock()
    session.post = MagicMock(side_effect=aiohttp.ClientPayloadError("Response payload is not completed"))
    transport = AiohttpTransport(session=session)

    with pytest.raises(DecodeError) as exc_info:
        await transport.post(ENDPOINT, "{}", {})

    assert isinstance(exc_info.value.original_error, aiohttp.ClientPayloadError)


@pytest.mark.asyncio
async def test_malformed_url_raises_invalid_request_error():
    transport = AiohttpTransport()

    with pytest.raises(InvalidRequestError) as exc_info:
        await transport.post("graphql", "{}", {})

    assert exc_info.value.error_type == ErrorType.INVALID_REQUEST
    assert isinstance(exc_info.value.original_error, aiohttp.InvalidURL)
