import pytest

import eventcatalog.db as db_module
from eventcatalog.matcher import EventMatcher
from eventcatalog.models import Event, Venue


@pytest.fixture
def blue_room(conn):
    return db_module.create_venue(conn, Venue(name="Blue Room"))


def _event(conn, title, start_date="2025-06-01", start_time="", venue_id=None, ticket_url=""):
    return db_module.create_event(
        conn,
        Event(title=title, start_date=start_date, start_time=start_time,
              venue_id=venue_id, ticket_url=ticket_url),
    )


# --- Ticket URL ---

def test_ticket_url_wins_over_title(conn, matcher, blue_room):
    event_id = _event(conn, "Khruangbin", start_time="20:00", venue_id=blue_room,
                      ticket_url="https://tickets.example.com/e/1")

    found = matcher.find_existing(
        "Something Else Entirely", "Red Room", "2025-06-01T20:00",
        "HTTPS://Tickets.Example.com/e/1/?utm_source=newsletter",
    )
    assert found == event_id


def test_ticket_url_on_another_day_does_not_match(conn, matcher):
    _event(conn, "Khruangbin", ticket_url="https://tickets.example.com/e/1")

    assert matcher.find_existing("Other", "", "2025-06-02", "https://tickets.example.com/e/1") is None


# --- Venue, day and fuzzy title ---

def test_fuzzy_title_at_same_venue_and_day(conn, matcher, blue_room):
    event_id = _event(conn, "Khruangbin", start_time="20:00", venue_id=blue_room)

    found = matcher.find_existing("Khruangbin w/ Men I Trust", "Blue Room", "2025-06-01", start_time="21:00")
    assert found == event_id


def test_fuzzy_title_on_another_day(conn, matcher, blue_room):
    _event(conn, "Khruangbin", venue_id=blue_room)

    assert matcher.find_existing("Khruangbin (Night 2)", "Blue Room", "2025-06-02") is None


def test_fuzzy_title_at_aliased_venue(conn, matcher):
    venue_id = db_module.create_venue(conn, Venue(name="The Bluebird"))
    event_id = _event(conn, "Khruangbin", venue_id=venue_id)

    assert matcher.find_existing("KHRUANGBIN", "Bluebird", "2025-06-01") == event_id


def test_fuzzy_title_at_resolved_venue_id(conn, matcher, blue_room):
    event_id = _event(conn, "Khruangbin", venue_id=blue_room)

    assert matcher.find_existing("Khruangbin", "Blue Room (new)", "2025-06-01") is None
    assert matcher.find_existing(
        "Khruangbin w/ Men I Trust", "Blue Room (new)", "2025-06-01", venue_id=blue_room,
    ) == event_id


def test_time_window_keeps_early_and_late_shows_apart(conn, matcher, blue_room):
    _event(conn, "Jazz Night", start_time="19:00", venue_id=blue_room)

    assert matcher.find_existing("Jazz Night (Late Show)", "Blue Room", "2025-06-01", start_time="22:00") is None


def test_time_window_accepts_nearby_start(conn, matcher, blue_room):
    event_id = _event(conn, "Jazz Night", start_time="19:00", venue_id=blue_room)

    assert matcher.find_existing("Jazz Night (Late Show)", "Blue Room", "2025-06-01", start_time="21:00") == event_id


def test_time_window_skipped_for_date_only_candidate(conn, matcher, blue_room):
    event_id = _event(conn, "Jazz Night", venue_id=blue_room)

    assert matcher.find_existing("Jazz Night (Late Show)", "Blue Room", "2025-06-01", start_time="23:00") == event_id


def test_time_window_width_is_configurable(conn, blue_room):
    event_id = _event(conn, "Jazz Night", start_time="19:00", venue_id=blue_room)
    wide = EventMatcher(conn, time_window_hours=4)

    assert wide.find_existing("Jazz Night (Late Show)", "Blue Room", "2025-06-01", start_time="22:00") == event_id


def test_injected_title_predicate(conn, blue_room):
    event_id = _event(conn, "Khruangbin", venue_id=blue_room)
    lenient = EventMatcher(conn, titles_match=lambda a, b: True)

    assert lenient.find_existing("Anything", "Blue Room", "2025-06-01") == event_id


# --- Exact title ---

def test_exact_title_without_venue(conn, matcher, blue_room):
    event_id = _event(conn, "Poetry Slam", venue_id=blue_room)

    assert matcher.find_existing("Poetry Slam") == event_id
    assert matcher.find_existing("Poetry Slam", start_date="2025-06-01") == event_id
    assert matcher.find_existing("Poetry Slam", start_date="2025-06-02") is None


def test_exact_title_at_another_venue_is_rejected(conn, matcher, blue_room):
    _event(conn, "Poetry Slam", venue_id=blue_room)

    assert matcher.find_existing("Poetry Slam", "Red Room", "2025-06-01") is None


def test_exact_title_without_assigned_venue_is_accepted(conn, matcher):
    event_id = _event(conn, "Poetry Slam")

    assert matcher.find_existing("Poetry Slam", "Red Room", "2025-06-01") == event_id


def test_exact_title_picks_first_compatible_candidate(conn, matcher, blue_room):
    red_room = db_module.create_venue(conn, Venue(name="Red Room"))
    _event(conn, "Poetry Slam", venue_id=blue_room)
    event_id = _event(conn, "Poetry Slam", venue_id=red_room)

    assert matcher.find_existing("Poetry Slam", "Red Room") == event_id


def test_exact_title_at_resolved_venue_id(conn, matcher, blue_room):
    event_id = _event(conn, "Poetry Slam", venue_id=blue_room)

    assert matcher.find_existing("Poetry Slam", "Blue Room (new)") is None
    assert matcher.find_existing("Poetry Slam", "Blue Room (new)", venue_id=blue_room) == event_id


def test_nothing_found(conn, matcher):
    assert matcher.find_existing("Nobody", "Nowhere", "2025-06-01", "https://x.com/e/9") is None
