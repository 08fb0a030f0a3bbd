"""
Geocoding and timezone clients.

Both are optional collaborators of VenueRegistry: build them from config with
build_geocoder() / build_timezone_client(), or pass any GeocodingClient /
TimezoneLookupClient implementation (tests use in-memory fakes).
"""

from typing import Optional

import eventcatalog.config as cfg_module
from eventcatalog.geo.base import GeocodingClient, TimezoneLookupClient
from eventcatalog.geo.geonames import GEONAMES_API, GeoNamesClient
from eventcatalog.geo.nominatim import DEFAULT_USER_AGENT, NOMINATIM_API, NominatimClient


def build_geocoder(cfg: dict) -> Optional[GeocodingClient]:
    geo_cfg = cfg_module.get_geocoding(cfg)
    if not geo_cfg.get("enabled", True):
        return None
    return NominatimClient(
        endpoint=geo_cfg.get("endpoint", NOMINATIM_API),
        user_agent=geo_cfg.get("user_agent", DEFAULT_USER_AGENT),
        timeout=geo_cfg.get("timeout", 10),
    )


def build_timezone_client(cfg: dict) -> TimezoneLookupClient:
    tz_cfg = cfg_module.get_timezone(cfg)
    return GeoNamesClient(
        username=tz_cfg.get("username", ""),
        endpoint=tz_cfg.get("endpoint", GEONAMES_API),
        timeout=tz_cfg.get("timeout", 10),
    )
