from abc import ABC, abstractmethod

from eventcatalog.errors import EnrichmentFailure


class GeocodingClient(ABC):

    @abstractmethod
    def search(self, query: str) -> tuple[float, float]:
        """
        Resolve a postal address to (lat, lng).

        Raises EnrichmentFailure on network errors, empty results or a
        malformed response.
        """
        ...


class TimezoneLookupClient(ABC):

    def is_configured(self) -> bool:
        return True

    @abstractmethod
    def lookup(self, coordinates: str) -> str:
        """Return the IANA timezone name for "lat,lng" coordinates."""
        ...


def format_coordinates(lat: float, lng: float) -> str:
    return f"{lat},{lng}"


def parse_coordinates(coordinates: str) -> tuple[float, float]:
    lat, sep, lng = (coordinates or "").partition(",")
    if not sep:
        raise EnrichmentFailure(f"Malformed coordinates: {coordinates!r}")
    try:
        return float(lat.strip()), float(lng.strip())
    except ValueError as exc:
        raise EnrichmentFailure(f"Malformed coordinates: {coordinates!r}") from exc
