import os
import tomllib
from pathlib import Path
from typing import Any

_DEFAULT_CONFIG_PATH = Path("config.toml")
_DEFAULT_ENV_PATH = Path("secrets")

DEFAULT_EVENT_DEFAULTS = {
    "performer_type":     "PerformingGroup",
    "organizer_type":     "Organization",
    "event_status":       "EventScheduled",
    "price_currency":     "USD",
    "offer_availability": "InStock",
}


# Secret variable -> (config section, key)
SECRET_VARS = {
    "GEONAMES_USERNAME":    ("timezone", "username"),
    "NOMINATIM_USER_AGENT": ("geocoding", "user_agent"),
}


def load(path: Path = _DEFAULT_CONFIG_PATH, env_path: Path = _DEFAULT_ENV_PATH) -> dict[str, Any]:
    """Load config from TOML, then overlay credentials from the secrets file and environment."""
    with open(path, "rb") as f:
        cfg = tomllib.load(f)
    _apply_secrets(cfg, _read_secrets(env_path))
    return cfg


def _read_secrets(env_path: Path) -> dict[str, str]:
    """KEY=value lines; blank lines and # comments are ignored, quotes stripped."""
    if not env_path.exists():
        return {}

    values = {}
    for line in env_path.read_text().splitlines():
        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep or not key or key.startswith("#"):
            continue
        values[key] = value.strip().strip("\"'")
    return values


def _apply_secrets(cfg: dict, from_file: dict[str, str]) -> None:
    """Shell environment variables take precedence over the secrets file."""
    for var, (section, key) in SECRET_VARS.items():
        value = os.environ.get(var) or from_file.get(var)
        if value:
            cfg.setdefault(section, {})[key] = value


def get_database_path(cfg: dict) -> Path:
    return Path(cfg.get("database", {}).get("path", "data/catalog.db"))


def get_geocoding(cfg: dict) -> dict:
    return cfg.get("geocoding", {})


def get_timezone(cfg: dict) -> dict:
    return cfg.get("timezone", {})


def get_time_window_hours(cfg: dict) -> float:
    return float(cfg.get("matching", {}).get("time_window_hours", 2))


def get_upsert(cfg: dict) -> dict:
    return cfg.get("upsert", {})


def get_event_defaults(cfg: dict) -> dict[str, str]:
    """Attribute defaults applied to every written event, overridable per key."""
    return {**DEFAULT_EVENT_DEFAULTS, **get_upsert(cfg).get("defaults", {})}


def get_venue_aliases(cfg: dict) -> dict[str, str]:
    return cfg.get("venues", {}).get("aliases", {})
