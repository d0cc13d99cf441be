"""HTTP transport used by the request executor."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Protocol

import aiohttp

from appsync.errors import ConnectivityError, DecodeError, InvalidRequestError

logger = logging.getLogger(__name__)


@dataclass
class HttpResponse:
    """Status code and raw text body of an HTTP response."""

    status: int
    body: str


class Transport(Protocol):
    """Sends an HTTP POST and returns the response.

    Implementations raise ConnectivityError when no response could be
    received at all, and return undecodable body bytes as replacement
    characters rather than failing.
    """

    async def post(self, url: str, body: str, headers: Mapping[str, str]) -> HttpResponse:
        ...


class AiohttpTransport:
    """Transport backed by aiohttp.

    A shared ClientSession may be passed in; it is left open for the caller
    to close. Without one, a session is opened for each request.
    """

    def __init__(self, session: Optional[aiohttp.ClientSession] = None):
        self._session = session

    async def post(self, url: str, body: str, headers: Mapping[str, str]) -> HttpResponse:
        try:
            if self._session is not None:
                return await self._post(self._session, url, body, headers)
            async with aiohttp.ClientSession() as session:
                return await self._post(session, url, body, headers)
        except aiohttp.InvalidURL as e:
            raise InvalidRequestError(
                f"Invalid endpoint URL {url!r}: {e}",
                original_error=e,
                context={"url": url},
            ) from e
        except aiohttp.ClientPayloadError as e:
            raise DecodeError(
                f"Could not read response body from {url}: {e}",
                original_error=e,
                context={"url": url},
            ) from e
        except aiohttp.ClientConnectionError as e:
            raise ConnectivityError(
                f"Could not connect to {url}: {e}",
                original_error=e,
                context={"url": url},
            ) from e
        except asyncio.TimeoutError as e:
            raise ConnectivityError(
                f"Timed out waiting for {url}",
                original_error=e,
                context={"url": url},
            ) from e

    @staticmethod
    async def _post(
        session: aiohttp.ClientSession,
        url: str,
        body: str,
        headers: Mapping[str, str],
    ) -> HttpResponse:
        async with session.post(url, data=body, headers=dict(headers)) as response:
            # Bodies are UTF-8 JSON; undecodable bytes become U+FFFD
            raw = await response.read()
            return HttpResponse(
                status=response.status,
                body=raw.decode("utf-8", errors="replace"),
            )
