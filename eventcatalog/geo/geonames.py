"""
Timezone lookup through the GeoNames timezone web service.

GET http://api.geonames.org/timezoneJSON?lat=..&lng=..&username=..
returns {"timezoneId": "America/Chicago", ...} on success and
{"status": {"message": ..., "value": ..}} on errors. A (free) GeoNames
account username is required; without one the client reports itself as
not configured and is never called.
"""

import requests

from eventcatalog.errors import EnrichmentFailure
from eventcatalog.geo.base import TimezoneLookupClient, parse_coordinates

GEONAMES_API = "http://api.geonames.org/timezoneJSON"


class GeoNamesClient(TimezoneLookupClient):
    def __init__(
        self,
        username: str = "",
        endpoint: str = GEONAMES_API,
        timeout: float = 10,
        session: requests.Session | None = None,
    ):
        self.username = username
        self.endpoint = endpoint
        self.timeout = timeout
        self.session = session or requests.Session()

    def is_configured(self) -> bool:
        return bool(self.username)

    def lookup(self, coordinates: str) -> str:
        if not self.is_configured():
            raise EnrichmentFailure("GeoNames username is not configured")

        lat, lng = parse_coordinates(coordinates)
        try:
            response = self.session.get(
                self.endpoint,
                params={"lat": lat, "lng": lng, "username": self.username},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as exc:
            raise EnrichmentFailure(f"Timezone request failed for {coordinates}: {exc}") from exc
        except ValueError as exc:
            raise EnrichmentFailure(f"Timezone service returned invalid JSON for {coordinates}") from exc

        if not isinstance(data, dict):
            raise EnrichmentFailure(f"Unexpected timezone response for {coordinates}")
        if "status" in data:
            message = data["status"].get("message", "unknown error") if isinstance(data["status"], dict) else data["status"]
            raise EnrichmentFailure(f"GeoNames error for {coordinates}: {message}")

        timezone = data.get("timezoneId") or ""
        if not timezone:
            raise EnrichmentFailure(f"No timezone found for {coordinates}")
        return timezone
