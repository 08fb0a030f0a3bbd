import argparse
import json
import logging
import sys
from collections import Counter
from pathlib import Path

from eventcatalog import __version__
import eventcatalog.config as cfg_module
import eventcatalog.db as db_module
from eventcatalog.errors import CatalogError
from eventcatalog.upsert import create_upserter
from eventcatalog.venues import formatted_address


def _read_payloads(path: Path) -> list[dict]:
    """Accept a JSON array or JSON Lines file of event payloads."""
    text = path.read_text(encoding="utf-8").strip()
    if not text:
        return []
    if text.startswith("["):
        return json.loads(text)
    return [json.loads(line) for line in text.splitlines() if line.strip()]


def _import(args, cfg):
    conn = db_module.connect(cfg_module.get_database_path(cfg))
    upserter = create_upserter(conn, cfg)
    if args.venue:
        upserter.settings.venue = args.venue

    try:
        payloads = _read_payloads(Path(args.path))
    except (OSError, ValueError) as exc:
        print(f"Error: could not read '{args.path}': {exc}", file=sys.stderr)
        sys.exit(1)

    counts: Counter = Counter()
    for payload in payloads:
        result = upserter.upsert(payload)
        if result.success:
            counts[result.action] += 1
        else:
            counts["failed"] += 1
            print(f"FAILED {payload.get('title', '<untitled>')!r}: {result.error}", file=sys.stderr)

    print(
        f"{len(payloads)} events processed: "
        f"{counts['created']} created, {counts['updated']} updated, "
        f"{counts['no_change']} unchanged, {counts['failed']} failed."
    )


def _parse_assignments(assignments: list[str]) -> dict[str, str]:
    attrs = {}
    for assignment in assignments:
        key, sep, value = assignment.partition("=")
        if not sep:
            print(f"Error: expected FIELD=VALUE, got '{assignment}'.", file=sys.stderr)
            sys.exit(1)
        attrs[key.strip()] = value
    return attrs


def _venue_update(args, cfg):
    conn = db_module.connect(cfg_module.get_database_path(cfg))
    upserter = create_upserter(conn, cfg)
    attrs = _parse_assignments(args.fields)

    try:
        changed = upserter.venues.update_meta(args.id, attrs)
    except CatalogError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    venue = upserter.venues.get(args.id)
    print(f"{'Updated' if changed else 'No changes to'} venue {venue.id} ({venue.name}).")
    print(f"  coordinates: {venue.coordinates or '-'}  timezone: {venue.timezone or '-'}")


def _event_update(args, cfg):
    conn = db_module.connect(cfg_module.get_database_path(cfg))
    upserter = create_upserter(conn, cfg)
    result = upserter.update_event(args.id, _parse_assignments(args.fields))

    for warning in result.warnings:
        print(f"Warning: {warning}", file=sys.stderr)
    if result.status == "failed":
        print(f"Error: {result.error}", file=sys.stderr)
        sys.exit(1)
    if result.updated_fields:
        print(f"Updated event {args.id}: {', '.join(result.updated_fields)}.")
    else:
        print(f"No changes to event {args.id}.")


def _geocode(args, cfg):
    conn = db_module.connect(cfg_module.get_database_path(cfg))
    upserter = create_upserter(conn, cfg)
    stats = upserter.venues.backfill(limit=args.limit)
    print(
        f"Checked {stats['checked']} venues: "
        f"{stats['geocoded']} geocoded, {stats['timezones']} timezones derived."
    )


def _venues(args, cfg):
    conn = db_module.connect(cfg_module.get_database_path(cfg))
    for venue in db_module.get_all_venues(conn):
        print(f"{venue.id:>5}  {venue.name:<40} {venue.coordinates or '-':<24} {venue.timezone or '-'}")
        address = formatted_address(venue)
        if address:
            print(f"       {address}")


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="ec",
        description="Event catalog import and venue resolution",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config", default="config.toml", metavar="PATH",
        help="Path to config.toml (default: config.toml)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    # import
    sp_import = subparsers.add_parser("import", help="Upsert events from a JSON or JSONL file")
    sp_import.add_argument("path", help="File of event payloads")
    sp_import.add_argument(
        "--venue", metavar="NAME",
        help="Assign every imported event to this venue name",
    )

    # venue-update
    sp_venue = subparsers.add_parser("venue-update", help="Overwrite venue fields")
    sp_venue.add_argument("id", type=int, help="Venue id")
    sp_venue.add_argument("fields", nargs="+", metavar="FIELD=VALUE")

    # event-update
    sp_event = subparsers.add_parser("event-update", help="Overwrite event fields")
    sp_event.add_argument("id", type=int, help="Event id")
    sp_event.add_argument("fields", nargs="+", metavar="FIELD=VALUE")

    # geocode
    sp_geocode = subparsers.add_parser("geocode", help="Backfill venue coordinates and timezones")
    sp_geocode.add_argument("--limit", type=int, metavar="N", help="Process at most N venues")

    # venues
    subparsers.add_parser("venues", help="List venues")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    cfg = cfg_module.load(Path(args.config))

    if args.command == "import":
        _import(args, cfg)
    elif args.command == "venue-update":
        _venue_update(args, cfg)
    elif args.command == "event-update":
        _event_update(args, cfg)
    elif args.command == "geocode":
        _geocode(args, cfg)
    elif args.command == "venues":
        _venues(args, cfg)


if __name__ == "__main__":
    main()
