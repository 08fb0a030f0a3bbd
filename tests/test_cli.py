import json

import pytest

from eventcatalog.cli import main

PAYLOADS = [
    {"title": "Jazz Night", "venue": "Blue Room", "startDate": "2025-06-01", "startTime": "20:00"},
    {"title": "Poetry Slam", "venue": "Blue Room", "startDate": "2025-06-02"},
    {"venue": "Blue Room", "startDate": "2025-06-03"},
]


@pytest.fixture
def config_path(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "config.toml"
    path.write_text(
        f'[database]\npath = "{(tmp_path / "catalog.db").as_posix()}"\n\n'
        "[geocoding]\nenabled = false\n"
    )
    return str(path)


@pytest.fixture
def events_file(tmp_path):
    path = tmp_path / "events.json"
    path.write_text(json.dumps(PAYLOADS))
    return str(path)


def test_import_reports_counts(config_path, events_file, capsys):
    main(["--config", config_path, "import", events_file])
    out, err = capsys.readouterr()
    assert "3 events processed: 2 created, 0 updated, 0 unchanged, 1 failed." in out
    assert "FAILED" in err

    main(["--config", config_path, "import", events_file])
    out, _ = capsys.readouterr()
    assert "0 created, 0 updated, 2 unchanged, 1 failed." in out


def test_import_jsonl_with_venue_override(config_path, tmp_path, capsys):
    path = tmp_path / "events.jsonl"
    path.write_text("\n".join(json.dumps(p) for p in PAYLOADS[:2]) + "\n")

    main(["--config", config_path, "import", str(path), "--venue", "Mohawk"])
    main(["--config", config_path, "venues"])

    out, _ = capsys.readouterr()
    assert "Mohawk" in out
    assert "Blue Room" not in out


def test_import_unreadable_file(config_path, tmp_path):
    with pytest.raises(SystemExit) as exc:
        main(["--config", config_path, "import", str(tmp_path / "missing.json")])
    assert exc.value.code == 1


def test_event_update(config_path, events_file, capsys):
    main(["--config", config_path, "import", events_file])
    capsys.readouterr()

    main(["--config", config_path, "event-update", "1", "price=$30", "event_status=Bogus"])

    out, err = capsys.readouterr()
    assert "Updated event 1: price." in out
    assert "event_status" in err


def test_event_update_missing_event(config_path):
    with pytest.raises(SystemExit) as exc:
        main(["--config", config_path, "event-update", "99", "price=$30"])
    assert exc.value.code == 1


def test_venue_update(config_path, events_file, capsys):
    main(["--config", config_path, "import", events_file])
    capsys.readouterr()

    main(["--config", config_path, "venue-update", "1", "city=Austin", "phone=555-0100"])

    out, _ = capsys.readouterr()
    assert "Updated venue 1 (Blue Room)." in out


def test_venue_update_rejects_bad_assignment(config_path):
    with pytest.raises(SystemExit):
        main(["--config", config_path, "venue-update", "1", "city"])


def test_geocode_without_geocoder(config_path, events_file, capsys):
    main(["--config", config_path, "import", events_file])
    capsys.readouterr()

    main(["--config", config_path, "geocode"])

    out, _ = capsys.readouterr()
    assert "Checked 1 venues: 0 geocoded, 0 timezones derived." in out
