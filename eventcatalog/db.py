import sqlite3
from pathlib import Path
from typing import Any, Optional

from eventcatalog.errors import StoreWriteError
from eventcatalog.identity import normalize_ticket_url
from eventcatalog.models import PROMOTER_FIELDS, VENUE_FIELDS, Event, Promoter, Venue

_EVENT_COLUMNS = (
    "title", "start_date", "start_time", "end_date", "end_time",
    "venue_id", "promoter_id", "venue", "address", "price", "price_currency",
    "ticket_url", "description", "performer", "performer_type",
    "organizer", "organizer_type", "organizer_url", "event_status",
    "previous_start_date", "offer_availability", "content",
)


def connect(db_path: Path) -> sqlite3.Connection:
    if str(db_path) != ":memory:":
        db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    _create_schema(conn)
    return conn


def _create_schema(conn: sqlite3.Connection) -> None:
    conn.executescript("""
        CREATE TABLE IF NOT EXISTS venues (
            id          INTEGER PRIMARY KEY AUTOINCREMENT,
            name        TEXT NOT NULL UNIQUE,
            address     TEXT NOT NULL DEFAULT '',
            city        TEXT NOT NULL DEFAULT '',
            state       TEXT NOT NULL DEFAULT '',
            zip         TEXT NOT NULL DEFAULT '',
            country     TEXT NOT NULL DEFAULT '',
            phone       TEXT NOT NULL DEFAULT '',
            website     TEXT NOT NULL DEFAULT '',
            capacity    TEXT NOT NULL DEFAULT '',
            coordinates TEXT NOT NULL DEFAULT '',
            timezone    TEXT NOT NULL DEFAULT ''
        );

        CREATE TABLE IF NOT EXISTS promoters (
            id          INTEGER PRIMARY KEY AUTOINCREMENT,
            name        TEXT NOT NULL UNIQUE,
            url         TEXT NOT NULL DEFAULT '',
            type        TEXT NOT NULL DEFAULT '',
            description TEXT NOT NULL DEFAULT ''
        );

        CREATE TABLE IF NOT EXISTS events (
            id                  INTEGER PRIMARY KEY AUTOINCREMENT,
            title               TEXT NOT NULL,
            start_date          TEXT NOT NULL DEFAULT '',
            start_time          TEXT NOT NULL DEFAULT '',
            end_date            TEXT NOT NULL DEFAULT '',
            end_time            TEXT NOT NULL DEFAULT '',
            venue_id            INTEGER REFERENCES venues(id),
            promoter_id         INTEGER REFERENCES promoters(id),
            venue               TEXT NOT NULL DEFAULT '',
            address             TEXT NOT NULL DEFAULT '',
            price               TEXT NOT NULL DEFAULT '',
            price_currency      TEXT NOT NULL DEFAULT '',
            ticket_url          TEXT NOT NULL DEFAULT '',
            ticket_url_key      TEXT NOT NULL DEFAULT '',
            description         TEXT NOT NULL DEFAULT '',
            performer           TEXT NOT NULL DEFAULT '',
            performer_type      TEXT NOT NULL DEFAULT '',
            organizer           TEXT NOT NULL DEFAULT '',
            organizer_type      TEXT NOT NULL DEFAULT '',
            organizer_url       TEXT NOT NULL DEFAULT '',
            event_status        TEXT NOT NULL DEFAULT '',
            previous_start_date TEXT NOT NULL DEFAULT '',
            offer_availability  TEXT NOT NULL DEFAULT '',
            content             TEXT NOT NULL DEFAULT ''
        );

        CREATE INDEX IF NOT EXISTS idx_events_venue_date ON events(venue_id, start_date);
        CREATE INDEX IF NOT EXISTS idx_events_ticket ON events(ticket_url_key, start_date);
        CREATE INDEX IF NOT EXISTS idx_events_title ON events(title);
    """)
    conn.commit()


def _write(conn: sqlite3.Connection, sql: str, params: Any) -> sqlite3.Cursor:
    try:
        cursor = conn.execute(sql, params)
        conn.commit()
    except sqlite3.Error as exc:
        conn.rollback()
        raise StoreWriteError(str(exc)) from exc
    return cursor


# --- Venues ---

def get_venue(conn: sqlite3.Connection, venue_id: int) -> Optional[Venue]:
    row = conn.execute("SELECT * FROM venues WHERE id = ?", (venue_id,)).fetchone()
    return _row_to_venue(row) if row else None


def get_venue_by_name(conn: sqlite3.Connection, name: str) -> Optional[Venue]:
    row = conn.execute("SELECT * FROM venues WHERE name = ?", (name,)).fetchone()
    return _row_to_venue(row) if row else None


def get_venues_with_city(conn: sqlite3.Connection) -> list[Venue]:
    rows = conn.execute("SELECT * FROM venues WHERE city != '' ORDER BY id").fetchall()
    return [_row_to_venue(r) for r in rows]


def get_all_venues(conn: sqlite3.Connection) -> list[Venue]:
    rows = conn.execute("SELECT * FROM venues ORDER BY name").fetchall()
    return [_row_to_venue(r) for r in rows]


def get_venues_missing_geodata(conn: sqlite3.Connection) -> list[Venue]:
    rows = conn.execute(
        "SELECT * FROM venues WHERE coordinates = '' OR timezone = '' ORDER BY id"
    ).fetchall()
    return [_row_to_venue(r) for r in rows]


def create_venue(conn: sqlite3.Connection, venue: Venue) -> int:
    columns = ("name",) + VENUE_FIELDS
    cursor = _write(
        conn,
        f"INSERT INTO venues ({', '.join(columns)}) "
        f"VALUES ({', '.join(':' + c for c in columns)})",
        {c: getattr(venue, c) or "" for c in columns},
    )
    venue.id = cursor.lastrowid
    return venue.id


def update_venue_fields(conn: sqlite3.Connection, venue_id: int, values: dict[str, str]) -> None:
    values = {k: v for k, v in values.items() if k in VENUE_FIELDS}
    if not values:
        return
    assignments = ", ".join(f"{k} = :{k}" for k in values)
    _write(conn, f"UPDATE venues SET {assignments} WHERE id = :id", {**values, "id": venue_id})


# --- Promoters ---

def get_promoter(conn: sqlite3.Connection, promoter_id: int) -> Optional[Promoter]:
    row = conn.execute("SELECT * FROM promoters WHERE id = ?", (promoter_id,)).fetchone()
    return _row_to_promoter(row) if row else None


def get_promoter_by_name(conn: sqlite3.Connection, name: str) -> Optional[Promoter]:
    row = conn.execute("SELECT * FROM promoters WHERE name = ?", (name,)).fetchone()
    return _row_to_promoter(row) if row else None


def create_promoter(conn: sqlite3.Connection, promoter: Promoter) -> int:
    cursor = _write(
        conn,
        "INSERT INTO promoters (name, url, type, description) VALUES (:name, :url, :type, :description)",
        {
            "name":        promoter.name,
            "url":         promoter.url or "",
            "type":        promoter.type or "",
            "description": promoter.description or "",
        },
    )
    promoter.id = cursor.lastrowid
    return promoter.id


def update_promoter_fields(conn: sqlite3.Connection, promoter_id: int, values: dict[str, str]) -> None:
    values = {k: v for k, v in values.items() if k in PROMOTER_FIELDS}
    if not values:
        return
    assignments = ", ".join(f"{k} = :{k}" for k in values)
    _write(conn, f"UPDATE promoters SET {assignments} WHERE id = :id", {**values, "id": promoter_id})


# --- Events ---

def get_event(conn: sqlite3.Connection, event_id: int) -> Optional[Event]:
    row = conn.execute("SELECT * FROM events WHERE id = ?", (event_id,)).fetchone()
    return _row_to_event(row) if row else None


def find_events(
    conn: sqlite3.Connection,
    title: Optional[str] = None,
    start_date: Optional[str] = None,
    venue_id: Optional[int] = None,
    ticket_url_key: Optional[str] = None,
    limit: Optional[int] = None,
) -> list[Event]:
    """Return events matching every given filter, oldest first."""
    clauses = []
    params: dict[str, Any] = {}
    if title is not None:
        clauses.append("title = :title")
        params["title"] = title
    if start_date is not None:
        clauses.append("start_date = :start_date")
        params["start_date"] = start_date
    if venue_id is not None:
        clauses.append("venue_id = :venue_id")
        params["venue_id"] = venue_id
    if ticket_url_key is not None:
        clauses.append("ticket_url_key = :ticket_url_key")
        params["ticket_url_key"] = ticket_url_key

    sql = "SELECT * FROM events"
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    sql += " ORDER BY id"
    if limit is not None:
        sql += " LIMIT :limit"
        params["limit"] = limit
    rows = conn.execute(sql, params).fetchall()
    return [_row_to_event(r) for r in rows]


def create_event(conn: sqlite3.Connection, event: Event) -> int:
    columns = _EVENT_COLUMNS + ("ticket_url_key",)
    cursor = _write(
        conn,
        f"INSERT INTO events ({', '.join(columns)}) "
        f"VALUES ({', '.join(':' + c for c in columns)})",
        _event_params(event),
    )
    event.id = cursor.lastrowid
    return event.id


def update_event(conn: sqlite3.Connection, event: Event) -> None:
    columns = _EVENT_COLUMNS + ("ticket_url_key",)
    assignments = ", ".join(f"{c} = :{c}" for c in columns)
    _write(
        conn,
        f"UPDATE events SET {assignments} WHERE id = :id",
        {**_event_params(event), "id": event.id},
    )


def set_event_venue(conn: sqlite3.Connection, event_id: int, venue_id: Optional[int]) -> None:
    _write(conn, "UPDATE events SET venue_id = ? WHERE id = ?", (venue_id, event_id))


def set_event_promoter(conn: sqlite3.Connection, event_id: int, promoter_id: Optional[int]) -> None:
    _write(conn, "UPDATE events SET promoter_id = ? WHERE id = ?", (promoter_id, event_id))


def _event_params(event: Event) -> dict[str, Any]:
    params = {}
    for column in _EVENT_COLUMNS:
        value = getattr(event, column)
        if column not in ("venue_id", "promoter_id"):
            value = value or ""
        params[column] = value
    params["ticket_url_key"] = normalize_ticket_url(event.ticket_url)
    return params


def _row_to_venue(row: sqlite3.Row) -> Venue:
    return Venue(id=row["id"], name=row["name"], **{f: row[f] for f in VENUE_FIELDS})


def _row_to_promoter(row: sqlite3.Row) -> Promoter:
    return Promoter(
        id=row["id"],
        name=row["name"],
        url=row["url"],
        type=row["type"],
        description=row["description"],
    )


def _row_to_event(row: sqlite3.Row) -> Event:
    return Event(id=row["id"], **{c: row[c] for c in _EVENT_COLUMNS})
