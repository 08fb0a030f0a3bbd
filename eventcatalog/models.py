from dataclasses import dataclass, field, fields
from typing import Any, NamedTuple, Optional

CREATED = "created"
UPDATED = "updated"
NO_CHANGE = "no_change"

VENUE_FIELDS = (
    "address", "city", "state", "zip", "country",
    "phone", "website", "capacity", "coordinates", "timezone",
)
ADDRESS_FIELDS = ("address", "city", "state", "zip", "country")
PROMOTER_FIELDS = ("url", "type", "description")

# Scalar attributes compared verbatim when deciding whether an event changed
COMPARE_FIELDS = (
    "start_date", "end_date", "start_time", "end_time",
    "venue", "address", "price", "ticket_url",
    "performer", "performer_type", "organizer", "organizer_type",
    "organizer_url", "event_status", "previous_start_date",
    "price_currency", "offer_availability",
)


@dataclass
class Venue:
    name: str
    address: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    country: str = ""
    phone: str = ""
    website: str = ""
    capacity: str = ""
    coordinates: str = ""   # "lat,lng"
    timezone: str = ""      # IANA name, e.g. "America/Chicago"
    # Populated by DB layer after insert
    id: Optional[int] = field(default=None, repr=False)


@dataclass
class Promoter:
    name: str
    url: str = ""
    type: str = ""
    description: str = ""
    id: Optional[int] = field(default=None, repr=False)


@dataclass
class Event:
    title: str
    start_date: str = ""    # YYYY-MM-DD
    start_time: str = ""    # HH:MM[:SS]
    end_date: str = ""
    end_time: str = ""
    venue_id: Optional[int] = None      # Foreign key to Venue.id
    promoter_id: Optional[int] = None   # Foreign key to Promoter.id
    venue: str = ""         # Venue name as reported by the source
    address: str = ""
    price: str = ""         # e.g. "$25", "$20 adv / $25 door"
    price_currency: str = ""
    ticket_url: str = ""
    description: str = ""
    performer: str = ""
    performer_type: str = ""
    organizer: str = ""
    organizer_type: str = ""
    organizer_url: str = ""
    event_status: str = ""
    previous_start_date: str = ""
    offer_availability: str = ""
    content: str = ""
    id: Optional[int] = field(default=None, repr=False)

    def attributes(self) -> dict[str, str]:
        attrs = {name: getattr(self, name) for name in COMPARE_FIELDS}
        attrs["description"] = self.description
        return attrs

    def start_datetime(self) -> str:
        return join_datetime(self.start_date, self.start_time)


# camelCase keys emitted by import handlers -> payload field names
_CAMEL_KEYS = {
    "startDate": "start_date",
    "startTime": "start_time",
    "endDate": "end_date",
    "endTime": "end_time",
    "venueAddress": "venue_address",
    "venueCity": "venue_city",
    "venueState": "venue_state",
    "venueZip": "venue_zip",
    "venueCountry": "venue_country",
    "venuePhone": "venue_phone",
    "venueWebsite": "venue_website",
    "venueCoordinates": "venue_coordinates",
    "venueCapacity": "venue_capacity",
    "priceCurrency": "price_currency",
    "ticketUrl": "ticket_url",
    "performerType": "performer_type",
    "organizerType": "organizer_type",
    "organizerUrl": "organizer_url",
    "eventStatus": "event_status",
    "previousStartDate": "previous_start_date",
    "offerAvailability": "offer_availability",
}


@dataclass
class EventPayload:
    """A normalized event as produced by an import handler."""

    title: str = ""
    start_date: str = ""
    start_time: str = ""
    end_date: str = ""
    end_time: str = ""
    venue: str = ""
    venue_address: str = ""
    venue_city: str = ""
    venue_state: str = ""
    venue_zip: str = ""
    venue_country: str = ""
    venue_phone: str = ""
    venue_website: str = ""
    venue_coordinates: str = ""
    venue_capacity: str = ""
    price: str = ""
    price_currency: str = ""
    ticket_url: str = ""
    description: str = ""
    performer: str = ""
    performer_type: str = ""
    organizer: str = ""
    organizer_type: str = ""
    organizer_url: str = ""
    event_status: str = ""
    previous_start_date: str = ""
    offer_availability: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EventPayload":
        known = {f.name for f in fields(cls)}
        values: dict[str, str] = {}
        for key, value in data.items():
            name = _CAMEL_KEYS.get(key, key)
            if name not in known:
                continue
            values[name] = _clean(value)
        return cls(**values)

    def merged_with(self, context: Optional[dict[str, Any]]) -> "EventPayload":
        """Return a copy where empty fields are filled from cached job context."""
        if not context:
            return self
        fallback = EventPayload.from_dict(context)
        values = {}
        for f in fields(self):
            own = getattr(self, f.name)
            values[f.name] = own if own else getattr(fallback, f.name)
        return EventPayload(**values)

    def venue_metadata(self) -> dict[str, str]:
        meta = {}
        for name in VENUE_FIELDS:
            value = getattr(self, f"venue_{name}", "")
            if value:
                meta[name] = value
        return meta

    def promoter_metadata(self) -> dict[str, str]:
        return {"url": self.organizer_url, "type": self.organizer_type}


class Resolution(NamedTuple):
    id: int
    was_created: bool


@dataclass
class UpsertResult:
    success: bool
    action: str = ""
    event_id: Optional[int] = None
    error: str = ""


@dataclass
class EventUpdateResult:
    event_id: Optional[int]
    status: str             # "updated" | "no_change" | "failed"
    updated_fields: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    error: str = ""


def join_datetime(date_str: str, time_str: str) -> str:
    """Combine a date and an optional time into "YYYY-MM-DDTHH:MM"."""
    if not date_str:
        return ""
    if not time_str or "T" in date_str or " " in date_str:
        return date_str
    return f"{date_str}T{time_str}"


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()
