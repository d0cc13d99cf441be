"""HTTP services: the aiohttp transport and the GraphQL request executor."""

from appsync.services.executor import RequestExecutor
from appsync.services.transport import AiohttpTransport, HttpResponse, Transport

__all__ = ["AiohttpTransport", "HttpResponse", "RequestExecutor", "Transport"]
