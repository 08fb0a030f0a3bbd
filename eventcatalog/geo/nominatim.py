"""
Geocoding through the OpenStreetMap Nominatim search API.

GET https://nominatim.openstreetmap.org/search?format=json&limit=1&q=<address>
returns a JSON list; the first entry carries "lat" and "lon" as strings.
Nominatim requires an identifying User-Agent.
"""

import requests

from eventcatalog.errors import EnrichmentFailure
from eventcatalog.geo.base import GeocodingClient

NOMINATIM_API = "https://nominatim.openstreetmap.org/search"
DEFAULT_USER_AGENT = "eventcatalog/0.1"


class NominatimClient(GeocodingClient):
    def __init__(
        self,
        endpoint: str = NOMINATIM_API,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 10,
        session: requests.Session | None = None,
    ):
        self.endpoint = endpoint
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": user_agent})

    def search(self, query: str) -> tuple[float, float]:
        try:
            response = self.session.get(
                self.endpoint,
                params={"format": "json", "limit": 1, "q": query},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as exc:
            raise EnrichmentFailure(f"Geocoding request failed for {query!r}: {exc}") from exc
        except ValueError as exc:
            raise EnrichmentFailure(f"Geocoding returned invalid JSON for {query!r}") from exc

        if not isinstance(data, list) or not data or not isinstance(data[0], dict):
            raise EnrichmentFailure(f"No geocoding results for {query!r}")

        first = data[0]
        try:
            return float(first["lat"]), float(first["lon"])
        except (KeyError, TypeError, ValueError) as exc:
            raise EnrichmentFailure(f"Geocoding result missing coordinates for {query!r}") from exc
