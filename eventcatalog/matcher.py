import logging
import sqlite3
from typing import Callable, Optional

import eventcatalog.db as db_module
from eventcatalog.identity import date_part, normalize_ticket_url, titles_match, within_time_window
from eventcatalog.models import join_datetime
from eventcatalog.venues import the_alias

logger = logging.getLogger(__name__)

TitlePredicate = Callable[[str, str], bool]


class EventMatcher:
    """
    Finds the catalog event an incoming listing refers to.

    Strategies run in order and the first hit wins:
      1. same normalized ticket URL on the same day
      2. same venue and day, matching core title, start times within the window
      3. exactly equal title (same day when known), venue-compatible
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        titles_match: TitlePredicate = titles_match,
        time_window_hours: float = 2,
    ):
        self.conn = conn
        self.titles_match = titles_match
        self.time_window_hours = time_window_hours

    def find_existing(
        self,
        title: str,
        venue_name: str = "",
        start_date: str = "",
        ticket_url: str = "",
        start_time: str = "",
        venue_id: Optional[int] = None,
    ) -> Optional[int]:
        """
        `venue_id` is the venue the listing already resolved to (by address
        or name); when given it takes precedence over a lookup by `venue_name`.
        """
        if ticket_url and start_date:
            event_id = self._by_ticket_url(ticket_url, start_date)
            if event_id:
                return event_id

        if (venue_name or venue_id) and start_date:
            event_id = self._by_venue_date_and_fuzzy_title(
                title, venue_name, start_date, start_time, venue_id,
            )
            if event_id:
                return event_id

        return self._by_exact_title(title, venue_name, start_date, venue_id)

    def _by_ticket_url(self, ticket_url: str, start_date: str) -> Optional[int]:
        key = normalize_ticket_url(ticket_url)
        if not key:
            return None
        matches = db_module.find_events(
            self.conn, ticket_url_key=key, start_date=date_part(start_date), limit=1,
        )
        if matches:
            logger.info("Matched event %s by ticket URL %s", matches[0].id, key)
            return matches[0].id
        return None

    def _by_venue_date_and_fuzzy_title(
        self, title: str, venue_name: str, start_date: str, start_time: str,
        venue_id: Optional[int] = None,
    ) -> Optional[int]:
        if venue_id is None:
            venue_id = self._venue_id_by_name(venue_name)
        if venue_id is None:
            return None

        incoming = join_datetime(start_date, start_time)
        candidates = db_module.find_events(self.conn, venue_id=venue_id, start_date=date_part(start_date))
        for candidate in candidates:
            if not self.titles_match(title, candidate.title):
                continue

            existing = candidate.start_datetime()
            if not within_time_window(incoming, existing, self.time_window_hours):
                logger.debug(
                    "Title %r matched event %s (%r) but %s is outside the time window of %s",
                    title, candidate.id, candidate.title, incoming, existing,
                )
                continue

            logger.info(
                "Fuzzy matched %r to event %s (%r) at %s on %s",
                title, candidate.id, candidate.title, venue_name, date_part(start_date),
            )
            return candidate.id
        return None

    def _by_exact_title(
        self, title: str, venue_name: str, start_date: str, venue_id: Optional[int] = None,
    ) -> Optional[int]:
        matches = db_module.find_events(
            self.conn,
            title=title,
            start_date=date_part(start_date) if start_date else None,
        )
        for candidate in matches:
            if candidate.venue_id is None or candidate.venue_id == venue_id:
                return candidate.id
            if not venue_name and venue_id is None:
                return candidate.id

            venue = db_module.get_venue(self.conn, candidate.venue_id)
            if venue is None or venue.name in (venue_name, the_alias(venue_name)):
                return candidate.id

            logger.debug(
                "Exact title %r found as event %s but at venue %r, not %r",
                title, candidate.id, venue.name, venue_name,
            )
        return None

    def _venue_id_by_name(self, venue_name: str) -> Optional[int]:
        if not venue_name:
            return None
        venue = db_module.get_venue_by_name(self.conn, venue_name)
        if venue is None:
            venue = db_module.get_venue_by_name(self.conn, the_alias(venue_name))
        return venue.id if venue else None
