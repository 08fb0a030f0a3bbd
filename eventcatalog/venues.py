"""
Venue resolution and enrichment.

A venue is matched by normalized (address, city) first, then by exact name
with a single "The " alias probe. Matches are merged additively (empty
fields are filled, populated ones are kept); only an explicit update may
overwrite, and changing the address that way invalidates coordinates and
timezone. Coordinates and timezone are derived at most once per address.
"""

import logging
import sqlite3
from typing import Callable, Optional

import eventcatalog.db as db_module
from eventcatalog.address import normalize_address, normalize_city
from eventcatalog.errors import EnrichmentFailure, NotFoundError
from eventcatalog.geo.base import GeocodingClient, TimezoneLookupClient, format_coordinates
from eventcatalog.models import ADDRESS_FIELDS, VENUE_FIELDS, Resolution, Venue

logger = logging.getLogger(__name__)

NameHook = Callable[[str], str]


def identity(name: str) -> str:
    return name


def alias_normalizer(aliases: dict[str, str]) -> NameHook:
    """Name hook that rewrites known aliases (case-insensitive) to their canonical name."""
    table = {alias.strip().lower(): canonical for alias, canonical in aliases.items()}

    def normalize(name: str) -> str:
        return table.get(name.strip().lower(), name)

    return normalize


def the_alias(name: str) -> str:
    """Toggle a leading "The ": "The Bluebird" <-> "Bluebird"."""
    if name[:4].lower() == "the ":
        return name[4:]
    return "The " + name


class VenueRegistry:
    def __init__(
        self,
        conn: sqlite3.Connection,
        geocoder: Optional[GeocodingClient] = None,
        timezones: Optional[TimezoneLookupClient] = None,
        normalize_name: NameHook = identity,
    ):
        self.conn = conn
        self.geocoder = geocoder
        self.timezones = timezones
        self.normalize_name = normalize_name

    def get(self, venue_id: int) -> Venue:
        venue = db_module.get_venue(self.conn, venue_id)
        if venue is None:
            raise NotFoundError(f"Venue ID {venue_id} not found")
        return venue

    # --- Matching ---

    def lookup(self, name: str, attrs: Optional[dict[str, str]] = None) -> Optional[Venue]:
        """Resolve an existing venue without writing anything."""
        attrs = _clean_attrs(attrs or {})

        venue = self.find_by_address(attrs.get("address", ""), attrs.get("city", ""))
        if venue:
            logger.debug("Venue %r matched %r (id=%s) by address", name, venue.name, venue.id)
            return venue
        return self.find_by_name(self.normalize_name(name.strip()))

    def find_or_create(self, name: str, attrs: Optional[dict[str, str]] = None) -> Resolution:
        attrs = _clean_attrs(attrs or {})

        venue = self.lookup(name, attrs)
        if venue:
            if attrs:
                self._smart_merge(venue, attrs)
            return Resolution(venue.id, False)

        name = self.normalize_name(name.strip())
        venue_id = db_module.create_venue(self.conn, Venue(name=name))
        logger.info("Created venue %r (id=%s)", name, venue_id)
        if attrs:
            self.update_meta(venue_id, attrs)
        return Resolution(venue_id, True)

    def find_by_address(self, address: str, city: str) -> Optional[Venue]:
        if not address or not city:
            return None

        wanted = (normalize_address(address), normalize_city(city))
        for venue in db_module.get_venues_with_city(self.conn):
            if not venue.address or not venue.city:
                continue
            if (normalize_address(venue.address), normalize_city(venue.city)) == wanted:
                return venue
        return None

    def find_by_name(self, name: str) -> Optional[Venue]:
        if not name:
            return None
        venue = db_module.get_venue_by_name(self.conn, name)
        if venue is None:
            venue = db_module.get_venue_by_name(self.conn, the_alias(name))
            if venue:
                logger.debug("Venue %r matched alias %r", name, venue.name)
        return venue

    # --- Metadata ---

    def _smart_merge(self, venue: Venue, attrs: dict[str, str]) -> None:
        """Fill empty fields only; never overwrite known values."""
        filled: dict[str, str] = {}
        for key in VENUE_FIELDS:
            value = attrs.get(key, "")
            if value and not getattr(venue, key):
                filled[key] = value

        if not filled:
            return
        db_module.update_venue_fields(self.conn, venue.id, filled)
        logger.debug("Venue %s: filled %s", venue.id, ", ".join(sorted(filled)))

        if any(key in ADDRESS_FIELDS for key in filled):
            self.maybe_geocode(venue.id)
        elif "coordinates" in filled:
            self.maybe_derive_timezone(venue.id, filled["coordinates"])

    def update_meta(self, venue_id: int, attrs: dict[str, str]) -> bool:
        """Overwrite every given field. A changed address re-triggers geocoding."""
        venue = self.get(venue_id)

        values: dict[str, str] = {}
        address_changed = False
        coordinates_added = False
        for key in VENUE_FIELDS:
            if key not in attrs:
                continue
            new_value = (attrs[key] or "").strip()
            old_value = getattr(venue, key)
            if key in ADDRESS_FIELDS and new_value != old_value:
                address_changed = True
            if key == "coordinates" and not old_value and new_value:
                coordinates_added = True
            values[key] = new_value

        if not values:
            return False

        if address_changed:
            # Stored geodata belongs to the old address; supplied values are kept as given
            for key in ("coordinates", "timezone"):
                if key not in values:
                    values[key] = ""
        db_module.update_venue_fields(self.conn, venue_id, values)

        if address_changed:
            self.maybe_geocode(venue_id)
        elif coordinates_added:
            self.maybe_derive_timezone(venue_id, values["coordinates"])
        return True

    # --- Enrichment ---

    def maybe_geocode(self, venue_id: int) -> bool:
        venue = self.get(venue_id)
        if venue.coordinates:
            self.maybe_derive_timezone(venue_id, venue.coordinates)
            return False

        parts = [getattr(venue, key) for key in ADDRESS_FIELDS if getattr(venue, key)]
        if not parts or self.geocoder is None:
            return False

        query = ", ".join(parts)
        try:
            lat, lng = self.geocoder.search(query)
        except EnrichmentFailure as exc:
            logger.warning("Geocoding failed for venue %s (%s): %s", venue_id, venue.name, exc)
            return False

        coordinates = format_coordinates(lat, lng)
        db_module.update_venue_fields(self.conn, venue_id, {"coordinates": coordinates})
        logger.info("Geocoded venue %s (%s) to %s", venue_id, venue.name, coordinates)
        self.maybe_derive_timezone(venue_id, coordinates)
        return True

    def maybe_derive_timezone(self, venue_id: int, coordinates: str = "") -> bool:
        venue = self.get(venue_id)
        if venue.timezone:
            return False

        coordinates = coordinates or venue.coordinates
        if not coordinates:
            return False
        if self.timezones is None or not self.timezones.is_configured():
            return False

        try:
            timezone = self.timezones.lookup(coordinates)
        except EnrichmentFailure as exc:
            logger.warning("Timezone lookup failed for venue %s (%s): %s", venue_id, venue.name, exc)
            return False

        db_module.update_venue_fields(self.conn, venue_id, {"timezone": timezone})
        logger.info("Venue %s (%s) timezone set to %s", venue_id, venue.name, timezone)
        return True

    def backfill(self, limit: Optional[int] = None) -> dict[str, int]:
        """Geocode and derive timezones for venues still missing them."""
        stats = {"checked": 0, "geocoded": 0, "timezones": 0}
        venues = db_module.get_venues_missing_geodata(self.conn)
        if limit is not None:
            venues = venues[:limit]

        for venue in venues:
            stats["checked"] += 1
            if self.maybe_geocode(venue.id):
                stats["geocoded"] += 1
            if not venue.timezone and self.get(venue.id).timezone:
                stats["timezones"] += 1
        return stats


def formatted_address(venue: Venue) -> str:
    """Single-line display address: "address, city, state, zip"."""
    parts = []
    if venue.address:
        parts.append(venue.address)
    city_state = ", ".join(p for p in (venue.city, venue.state) if p)
    if city_state:
        parts.append(city_state)
    if venue.zip:
        parts.append(venue.zip)
    return ", ".join(parts)


def _clean_attrs(attrs: dict[str, str]) -> dict[str, str]:
    return {k: str(v).strip() for k, v in attrs.items() if k in VENUE_FIELDS and v is not None}
