"""GraphQL request executor.

Serializes a QueryRequest, POSTs it to the endpoint and unwraps the `data`
field of the response. Caching is the client's job, not the executor's.
"""

import json
import logging
from typing import Any, Optional

from aiohttp import hdrs

from appsync.errors import DecodeError, HttpError
from appsync.models.request import QueryRequest
from appsync.services.transport import AiohttpTransport, Transport
from appsync.utils.text import to_repr

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"
HTTP_OK = 200


class RequestExecutor:
    """Executes a single GraphQL request over HTTP."""

    def __init__(self, transport: Optional[Transport] = None):
        self.transport = transport or AiohttpTransport()

    @staticmethod
    def build_headers(request: QueryRequest) -> dict:
        return {
            hdrs.AUTHORIZATION: request.access_token,
            hdrs.CONTENT_TYPE: JSON_CONTENT_TYPE,
        }

    async def send(self, request: QueryRequest) -> Any:
        """Send the request and return the response's `data` field.

        Raises:
            ConnectivityError: endpoint unreachable (from the transport)
            HttpError: non-200 response status
            DecodeError: body is not a JSON object with a `data` field
        """
        body = request.body
        logger.debug(f"POST {to_repr(request.endpoint)} - {to_repr(body)}")

        response = await self.transport.post(
            request.endpoint, body, self.build_headers(request)
        )

        if response.status != HTTP_OK:
            raise HttpError(
                response.status,
                response.body,
                context={"endpoint": request.endpoint},
            )

        try:
            result = json.loads(response.body)
        except ValueError as e:
            raise DecodeError(
                f"Response from {request.endpoint} is not valid JSON: {e}",
                original_error=e,
                context={"endpoint": request.endpoint},
            ) from e

        # Only `data` is read; an `errors` array, if any, is not interpreted
        if not isinstance(result, dict) or "data" not in result:
            raise DecodeError(
                f"Response from {request.endpoint} has no `data` field",
                context={"endpoint": request.endpoint},
            )

        return result["data"]
