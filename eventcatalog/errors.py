class CatalogError(Exception):
    """Base class for errors raised by the catalog engine."""


class ValidationError(CatalogError):
    """A required identity field is missing from the payload."""


class NotFoundError(CatalogError):
    """A referenced venue, promoter or event id does not exist."""


class EnrichmentFailure(CatalogError):
    """Geocoding or timezone lookup failed. Never fatal to an upsert."""


class StoreWriteError(CatalogError):
    """The record store rejected a create or update."""
