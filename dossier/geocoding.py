"""Address lookup against the Nominatim geocoder, restricted to Great Britain."""

import httpx
from pydantic import TypeAdapter

from dossier.logging import get_logger
from dossier.models import GeocodeCandidate

log = get_logger("dossier.geocoding")

MIN_QUERY_LENGTH = 3
MAX_CANDIDATES = 5
COUNTRY_CODES = "gb"

_candidates = TypeAdapter(list[GeocodeCandidate])


class GeocodingClient:
    def __init__(self, http_client: httpx.AsyncClient, url: str, user_agent: str) -> None:
        self._http = http_client
        self._url = url
        self._user_agent = user_agent

    async def search(self, query: str, limit: int = MAX_CANDIDATES) -> list[GeocodeCandidate]:
        """Return up to ``limit`` (at most 5) candidates for a free-text query.

        Queries under three characters short-circuit to an empty list, and a
        geocoder failure degrades to an empty list as well.
        """
        if len(query.strip()) < MIN_QUERY_LENGTH:
            return []

        params = {
            "format": "json",
            "q": query,
            "countrycodes": COUNTRY_CODES,
            "addressdetails": 1,
            "limit": max(1, min(limit, MAX_CANDIDATES)),
        }
        try:
            response = await self._http.get(
                self._url,
                params=params,
                headers={"Accept-Language": "en-GB,en", "User-Agent": self._user_agent},
            )
            response.raise_for_status()
            return _candidates.validate_python(response.json())
        except (httpx.HTTPError, ValueError) as e:
            log.warning("geocoding.lookup_failed", query=query, error_type=type(e).__name__, error=str(e))
            return []

    async def locate(self, address: str) -> GeocodeCandidate | None:
        """Best single match, used to centre the map on a chosen address."""
        candidates = await self.search(address, limit=1)
        return candidates[0] if candidates else None
