import pytest
import requests
import responses
from responses import matchers

from eventcatalog.errors import EnrichmentFailure
from eventcatalog.geo import build_geocoder, build_timezone_client
from eventcatalog.geo.base import format_coordinates, parse_coordinates
from eventcatalog.geo.geonames import GEONAMES_API, GeoNamesClient
from eventcatalog.geo.nominatim import NOMINATIM_API, NominatimClient


# --- Nominatim ---

@responses.activate
def test_nominatim_search():
    responses.get(
        NOMINATIM_API,
        json=[{"lat": "30.2672", "lon": "-97.7431", "display_name": "Austin"}],
        match=[
            matchers.query_param_matcher({"format": "json", "limit": "1", "q": "1 Main St, Austin"}),
            matchers.header_matcher({"User-Agent": "eventcatalog-tests"}),
        ],
    )
    client = NominatimClient(user_agent="eventcatalog-tests")

    assert client.search("1 Main St, Austin") == (30.2672, -97.7431)


@responses.activate
def test_nominatim_no_results():
    responses.get(NOMINATIM_API, json=[])

    with pytest.raises(EnrichmentFailure):
        NominatimClient().search("Nowhere")


@responses.activate
def test_nominatim_server_error():
    responses.get(NOMINATIM_API, status=500)

    with pytest.raises(EnrichmentFailure):
        NominatimClient().search("1 Main St")


@responses.activate
def test_nominatim_connection_error():
    responses.get(NOMINATIM_API, body=requests.ConnectionError("refused"))

    with pytest.raises(EnrichmentFailure):
        NominatimClient().search("1 Main St")


@responses.activate
def test_nominatim_result_without_coordinates():
    responses.get(NOMINATIM_API, json=[{"display_name": "Austin"}])

    with pytest.raises(EnrichmentFailure):
        NominatimClient().search("Austin")


# --- GeoNames ---

@responses.activate
def test_geonames_lookup():
    responses.get(
        GEONAMES_API,
        json={"timezoneId": "America/Chicago", "countryCode": "US"},
        match=[matchers.query_param_matcher({"lat": "30.2672", "lng": "-97.7431", "username": "demo"})],
    )

    assert GeoNamesClient(username="demo").lookup("30.2672,-97.7431") == "America/Chicago"


@responses.activate
def test_geonames_error_status():
    responses.get(GEONAMES_API, json={"status": {"message": "user does not exist.", "value": 10}})

    with pytest.raises(EnrichmentFailure, match="user does not exist"):
        GeoNamesClient(username="demo").lookup("30.2672,-97.7431")


@responses.activate
def test_geonames_missing_timezone():
    responses.get(GEONAMES_API, json={"countryCode": "US"})

    with pytest.raises(EnrichmentFailure):
        GeoNamesClient(username="demo").lookup("30.2672,-97.7431")


def test_geonames_requires_username():
    client = GeoNamesClient()

    assert not client.is_configured()
    with pytest.raises(EnrichmentFailure):
        client.lookup("30.2672,-97.7431")


def test_geonames_rejects_malformed_coordinates():
    with pytest.raises(EnrichmentFailure):
        GeoNamesClient(username="demo").lookup("somewhere")


# --- Coordinates and factories ---

def test_coordinates_format_and_parse():
    assert format_coordinates(30.2672, -97.7431) == "30.2672,-97.7431"
    assert parse_coordinates(" 30.2672 , -97.7431 ") == (30.2672, -97.7431)
    with pytest.raises(EnrichmentFailure):
        parse_coordinates("north,west")


def test_build_clients_from_config():
    assert build_geocoder({"geocoding": {"enabled": False}}) is None

    geocoder = build_geocoder({"geocoding": {"user_agent": "me@example.com"}})
    assert geocoder.endpoint == NOMINATIM_API
    assert geocoder.session.headers["User-Agent"] == "me@example.com"

    timezones = build_timezone_client({"timezone": {"username": "demo"}})
    assert timezones.is_configured()
    assert not build_timezone_client({}).is_configured()
