"""
Create-or-update entry point for imported events.

    upserter = create_upserter(conn, cfg)
    result = upserter.upsert({"title": "Jazz Night", "venue": "Blue Room",
                              "startDate": "2025-06-01", "startTime": "20:00"})
    result.action  # "created", then "no_change" for the same payload

Writes are three separate steps (event row, venue, promoter). If a relation
step fails after the event row was written, the event stays without that
relation and the failure result carries its id.
"""

import dataclasses
import logging
import sqlite3
from dataclasses import dataclass, field
from typing import Any, Optional, Union

import eventcatalog.config as cfg_module
import eventcatalog.db as db_module
from eventcatalog.changes import has_changed
from eventcatalog.content import render_event_content
from eventcatalog.errors import CatalogError, NotFoundError, ValidationError
from eventcatalog.geo import build_geocoder, build_timezone_client
from eventcatalog.identity import date_part, normalize_date, normalize_time, time_part
from eventcatalog.matcher import EventMatcher
from eventcatalog.models import (
    COMPARE_FIELDS,
    CREATED,
    NO_CHANGE,
    UPDATED,
    Event,
    EventPayload,
    EventUpdateResult,
    UpsertResult,
)
from eventcatalog.promoters import PromoterRegistry
from eventcatalog.venues import VenueRegistry, alias_normalizer, identity

logger = logging.getLogger(__name__)

PROMOTER_AUTO = "auto"
PROMOTER_SKIP = "skip"

PERFORMER_TYPES = ("Person", "PerformingGroup", "MusicGroup")
EVENT_STATUSES = ("EventScheduled", "EventPostponed", "EventCancelled", "EventRescheduled")

# Fields an operator may overwrite through update_event()
UPDATABLE_FIELDS = (
    "start_date", "start_time", "end_date", "end_time",
    "description", "price", "price_currency", "ticket_url",
    "performer", "performer_type", "organizer", "organizer_type",
    "organizer_url", "event_status", "previous_start_date", "offer_availability",
)


@dataclass
class UpsertSettings:
    promoter: str = PROMOTER_AUTO   # "auto" | "skip" | "<promoter id>"
    venue: str = ""                 # Forces every event onto this venue name
    defaults: dict[str, str] = field(default_factory=lambda: dict(cfg_module.DEFAULT_EVENT_DEFAULTS))

    @classmethod
    def from_config(cls, cfg: dict) -> "UpsertSettings":
        upsert_cfg = cfg_module.get_upsert(cfg)
        return cls(
            promoter=str(upsert_cfg.get("promoter", PROMOTER_AUTO)),
            venue=upsert_cfg.get("venue", ""),
            defaults=cfg_module.get_event_defaults(cfg),
        )


class EventUpserter:
    def __init__(
        self,
        conn: sqlite3.Connection,
        matcher: EventMatcher,
        venues: VenueRegistry,
        promoters: PromoterRegistry,
        settings: Optional[UpsertSettings] = None,
    ):
        self.conn = conn
        self.matcher = matcher
        self.venues = venues
        self.promoters = promoters
        self.settings = settings or UpsertSettings()

    def upsert(
        self,
        payload: Union[EventPayload, dict[str, Any]],
        context: Optional[dict[str, Any]] = None,
    ) -> UpsertResult:
        """
        Create, update or skip one event.

        Args:
            payload: The event as produced by an import handler.
            context: Values cached for the whole import job (e.g. venue details
                     scraped once per page). Only fills fields the payload leaves empty.

        Never raises; failures come back as UpsertResult(success=False).
        """
        try:
            return self._upsert(payload, context)
        except ValidationError as exc:
            logger.warning("Event upsert rejected: %s", exc)
            return UpsertResult(success=False, error=str(exc))
        except (CatalogError, sqlite3.Error) as exc:
            logger.exception("Event upsert failed")
            return UpsertResult(success=False, error=str(exc))

    def _upsert(self, payload, context) -> UpsertResult:
        if isinstance(payload, dict):
            payload = EventPayload.from_dict(payload)
        if not payload.title:
            raise ValidationError("title is required for event upsert")

        payload = payload.merged_with(context)
        if self.settings.venue:
            payload = dataclasses.replace(payload, venue=self.settings.venue)

        logger.debug(
            "Processing event %r at %r on %s", payload.title, payload.venue, payload.start_date,
        )

        incoming = self.build_attributes(payload)
        venue_name = ""
        known_venue = None
        if payload.venue:
            venue_name = self.venues.normalize_name(payload.venue)
            known_venue = self.venues.lookup(payload.venue, payload.venue_metadata())
        existing_id = self.matcher.find_existing(
            payload.title,
            venue_name,
            incoming["start_date"],
            payload.ticket_url,
            start_time=incoming["start_time"],
            venue_id=known_venue.id if known_venue else None,
        )

        if existing_id:
            existing = db_module.get_event(self.conn, existing_id)
            if not has_changed(existing.attributes(), incoming):
                logger.debug("Skipped event %s %r (no changes)", existing_id, payload.title)
                return UpsertResult(success=True, action=NO_CHANGE, event_id=existing_id)

            event = Event(
                id=existing_id,
                title=payload.title,
                venue_id=existing.venue_id,
                promoter_id=existing.promoter_id,
                content=render_event_content(incoming),
                **incoming,
            )
            db_module.update_event(self.conn, event)
            action = UPDATED
        else:
            event = Event(title=payload.title, content=render_event_content(incoming), **incoming)
            db_module.create_event(self.conn, event)
            action = CREATED

        try:
            self._assign_venue(event.id, payload)
            self._assign_promoter(event.id, payload)
        except (CatalogError, sqlite3.Error) as exc:
            logger.exception("Event %s saved but relation assignment failed", event.id)
            return UpsertResult(success=False, action=action, event_id=event.id, error=str(exc))

        logger.info("%s event %s %r", action.capitalize(), event.id, payload.title)
        return UpsertResult(success=True, action=action, event_id=event.id)

    def build_attributes(self, payload: EventPayload) -> dict[str, str]:
        """Event attributes exactly as they will be stored, defaults included."""
        attrs = {name: getattr(payload, name, "") for name in COMPARE_FIELDS}
        attrs["venue"] = payload.venue
        attrs["address"] = payload.venue_address
        attrs["description"] = payload.description

        for date_key, time_key in (("start_date", "start_time"), ("end_date", "end_time")):
            raw = attrs[date_key]
            attrs[date_key] = date_part(raw)
            if attrs[time_key]:
                attrs[time_key] = normalize_time(attrs[time_key])
            else:
                attrs[time_key] = time_part(raw)

        defaults = self.settings.defaults
        for key, value in defaults.items():
            if key not in attrs or attrs[key]:
                continue
            if key == "performer_type" and not attrs["performer"]:
                continue
            if key == "organizer_type" and not attrs["organizer"]:
                continue
            attrs[key] = value
        return attrs

    def _assign_venue(self, event_id: int, payload: EventPayload) -> None:
        if not payload.venue:
            return
        resolution = self.venues.find_or_create(payload.venue, payload.venue_metadata())
        db_module.set_event_venue(self.conn, event_id, resolution.id)

    def _assign_promoter(self, event_id: int, payload: EventPayload) -> None:
        selection = self.settings.promoter
        if selection == PROMOTER_SKIP:
            return

        if selection.isdigit() and int(selection) > 0:
            try:
                promoter = self.promoters.get(int(selection))
            except NotFoundError:
                logger.warning("Configured promoter %s not found, skipped promoter assignment", selection)
                return
            db_module.set_event_promoter(self.conn, event_id, promoter.id)
            return

        if selection != PROMOTER_AUTO or not payload.organizer:
            return
        attrs = payload.promoter_metadata()
        attrs["type"] = attrs["type"] or self.settings.defaults.get("organizer_type", "")
        resolution = self.promoters.find_or_create(payload.organizer, attrs)
        db_module.set_event_promoter(self.conn, event_id, resolution.id)

    # --- Explicit edits ---

    def update_event(self, event_id: int, fields: dict[str, Any]) -> EventUpdateResult:
        """
        Overwrite the given fields of one event.

        A "venue_id" key assigns an existing venue; an unknown id is reported
        as a warning and the other fields are still written.
        """
        try:
            return self._update_event(event_id, fields)
        except (CatalogError, sqlite3.Error) as exc:
            logger.exception("Event update failed for %s", event_id)
            return EventUpdateResult(event_id=event_id, status="failed", error=str(exc))

    def _update_event(self, event_id: int, fields: dict[str, Any]) -> EventUpdateResult:
        event = db_module.get_event(self.conn, event_id)
        if event is None:
            return EventUpdateResult(event_id=event_id, status="failed", error="Event not found")

        updated: list[str] = []
        warnings: list[str] = []

        for name in UPDATABLE_FIELDS:
            if name not in fields:
                continue
            value = "" if fields[name] is None else str(fields[name]).strip()
            if name in ("start_date", "end_date"):
                value = normalize_date(value)
            elif name in ("start_time", "end_time"):
                value = normalize_time(value)
            elif name == "performer_type" and value and value not in PERFORMER_TYPES:
                warnings.append(f"Ignored invalid performer_type {value!r}")
                continue
            elif name == "event_status" and value and value not in EVENT_STATUSES:
                warnings.append(f"Ignored invalid event_status {value!r}")
                continue
            setattr(event, name, value)
            updated.append(name)

        venue_id = fields.get("venue_id")
        if venue_id:
            try:
                venue = self.venues.get(int(venue_id))
            except (NotFoundError, TypeError, ValueError):
                message = f"Venue ID {venue_id} not found, skipped venue assignment"
                logger.warning("Event %s: %s", event_id, message)
                warnings.append(message)
            else:
                event.venue_id = venue.id
                updated.append("venue")

        if not updated:
            return EventUpdateResult(event_id=event_id, status=NO_CHANGE, warnings=warnings)

        event.content = render_event_content(event.attributes())
        db_module.update_event(self.conn, event)
        logger.info("Updated event %s: %s", event_id, ", ".join(updated))
        return EventUpdateResult(
            event_id=event_id, status=UPDATED, updated_fields=updated, warnings=warnings,
        )


def create_upserter(conn: sqlite3.Connection, cfg: dict) -> EventUpserter:
    aliases = cfg_module.get_venue_aliases(cfg)
    venues = VenueRegistry(
        conn,
        geocoder=build_geocoder(cfg),
        timezones=build_timezone_client(cfg),
        normalize_name=alias_normalizer(aliases) if aliases else identity,
    )
    matcher = EventMatcher(conn, time_window_hours=cfg_module.get_time_window_hours(cfg))
    return EventUpserter(
        conn,
        matcher=matcher,
        venues=venues,
        promoters=PromoterRegistry(conn),
        settings=UpsertSettings.from_config(cfg),
    )
