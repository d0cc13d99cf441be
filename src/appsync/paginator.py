"""Cursor pagination on top of AppSync.execute.

The query must accept the `limit` and `nextToken` variables and return,
among its top-level fields, an object holding `nextToken` while more pages
remain. Pages are fetched strictly one after another, only when the
consumer asks for the next one.
"""

import logging
from typing import TYPE_CHECKING, Any, AsyncIterator, Optional

from appsync.models.request import CachePriority, QueryRequest
from appsync.utils.config import Config

if TYPE_CHECKING:
    from appsync.cache.database import CacheDatabase
    from appsync.client import AppSync

logger = logging.getLogger(__name__)

NEXT_TOKEN = "nextToken"
LIMIT = "limit"


def extract_next_token(data: Any) -> Optional[str]:
    """Return the cursor of the first top-level object holding `nextToken`.

    Args:
        data: The `data` field of a response page

    Returns:
        The cursor, or None when pagination is finished
    """
    if not isinstance(data, dict):
        return None
    for item in data.values():
        if isinstance(item, dict) and NEXT_TOKEN in item:
            return item[NEXT_TOKEN]
    return None


async def paginate(
    client: "AppSync",
    request: QueryRequest,
    batch_size: Optional[int] = None,
    cache: Optional["CacheDatabase"] = None,
    priority: CachePriority = CachePriority.NETWORK,
) -> AsyncIterator[Any]:
    """Yield response pages until the cursor runs out.

    Each page is requested through client.execute with `limit` and
    `nextToken` merged into the request variables. Variables supplied by the
    caller take precedence over `limit`; a caller supplied `nextToken` only
    seeds the first page.

    Re-iterating starts over from the first page. Breaking out of the loop
    stops further requests. An error on any page ends the sequence; pages
    already yielded stay with the consumer.

    Args:
        client: AppSync client used to execute each page
        request: The paginated request
        batch_size: Page size passed as `limit` (default: Config.PAGE_SIZE)
        cache: Optional cache database, see AppSync.execute
        priority: Cache priority, see AppSync.execute

    Yields:
        The `data` field of each page
    """
    if batch_size is None:
        batch_size = Config.PAGE_SIZE
    next_token = request.variables.get(NEXT_TOKEN)
    page = 0

    while True:
        variables = {LIMIT: batch_size, NEXT_TOKEN: next_token, **request.variables}
        variables[NEXT_TOKEN] = next_token

        data = await client.execute(
            request.with_variables(variables),
            cache=cache,
            priority=priority,
        )
        page += 1
        next_token = extract_next_token(data)
        logger.debug(f"fetched page {page} (nextToken: {next_token!r})")

        yield data

        if next_token is None:
            break
