from pathlib import Path

import pytest

import eventcatalog.db as db_module
from eventcatalog.errors import EnrichmentFailure
from eventcatalog.geo.base import GeocodingClient, TimezoneLookupClient
from eventcatalog.matcher import EventMatcher
from eventcatalog.promoters import PromoterRegistry
from eventcatalog.upsert import EventUpserter
from eventcatalog.venues import VenueRegistry

AUSTIN = (30.2672, -97.7431)


class FakeGeocoder(GeocodingClient):
    def __init__(self, result=AUSTIN, fail=False):
        self.result = result
        self.fail = fail
        self.queries: list[str] = []

    def search(self, query: str) -> tuple[float, float]:
        self.queries.append(query)
        if self.fail:
            raise EnrichmentFailure("geocoder unavailable")
        return self.result


class FakeTimezones(TimezoneLookupClient):
    def __init__(self, timezone="America/Chicago", configured=True, fail=False):
        self.timezone = timezone
        self.configured = configured
        self.fail = fail
        self.lookups: list[str] = []

    def is_configured(self) -> bool:
        return self.configured

    def lookup(self, coordinates: str) -> str:
        self.lookups.append(coordinates)
        if self.fail:
            raise EnrichmentFailure("timezone service unavailable")
        return self.timezone


@pytest.fixture
def conn():
    conn = db_module.connect(Path(":memory:"))
    yield conn
    conn.close()


@pytest.fixture
def geocoder():
    return FakeGeocoder()


@pytest.fixture
def timezones():
    return FakeTimezones()


@pytest.fixture
def venues(conn, geocoder, timezones):
    return VenueRegistry(conn, geocoder=geocoder, timezones=timezones)


@pytest.fixture
def promoters(conn):
    return PromoterRegistry(conn)


@pytest.fixture
def matcher(conn):
    return EventMatcher(conn)


@pytest.fixture
def upserter(conn, matcher, venues, promoters):
    return EventUpserter(conn, matcher=matcher, venues=venues, promoters=promoters)
