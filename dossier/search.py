"""Search API client and the three-query fanout."""

import asyncio

import httpx
from pydantic import TypeAdapter

from dossier.logging import get_logger
from dossier.models import SearchResult

log = get_logger("dossier.search")

MAX_RESULTS_PER_QUERY = 3

QUERY_TEMPLATES = (
    "real estate history, last sale price, property value for {address}",
    "building permits, permit history, inspection records for {address}",
    "neighborhood trends, recent renovations, common improvements near {address}",
)

_results = TypeAdapter(list[SearchResult])


def build_search_queries(address: str) -> list[str]:
    """Substitute the address verbatim into the sale, permits and neighborhood templates."""
    return [template.format(address=address) for template in QUERY_TEMPLATES]


class SearchClient:
    """Thin async wrapper over the search API's POST endpoint."""

    def __init__(self, http_client: httpx.AsyncClient, api_key: str, url: str) -> None:
        self._http = http_client
        self._api_key = api_key
        self._url = url

    async def search(self, query: str) -> list[SearchResult]:
        """Run one query; raises on transport errors, non-success status or a malformed body."""
        response = await self._http.post(
            self._url,
            headers={"Authorization": f"Bearer {self._api_key}"},
            json={
                "query": query,
                "max_num_results": MAX_RESULTS_PER_QUERY,
                "search_type": "standard",
            },
        )
        response.raise_for_status()
        return _results.validate_python(response.json().get("results") or [])

    async def search_or_empty(self, query: str) -> list[SearchResult]:
        try:
            return await self.search(query)
        except httpx.HTTPStatusError as e:
            log.warning("search.query_failed", query=query, status_code=e.response.status_code)
        except (httpx.HTTPError, ValueError, TypeError, AttributeError) as e:
            log.warning("search.query_failed", query=query, error_type=type(e).__name__, error=str(e))
        return []

    async def fan_out(self, queries: list[str]) -> list[list[SearchResult]]:
        """Issue all queries concurrently and return their result sets in query order.

        A failing query yields an empty set instead of failing the join.
        """
        async with asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(self.search_or_empty(query)) for query in queries]
        return [task.result() for task in tasks]
