import logging
import sqlite3
from typing import Optional

import eventcatalog.db as db_module
from eventcatalog.errors import NotFoundError
from eventcatalog.models import PROMOTER_FIELDS, Promoter, Resolution

logger = logging.getLogger(__name__)


class PromoterRegistry:
    """Promoters are matched by exact name and merged like venues, without geodata."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def get(self, promoter_id: int) -> Promoter:
        promoter = db_module.get_promoter(self.conn, promoter_id)
        if promoter is None:
            raise NotFoundError(f"Promoter ID {promoter_id} not found")
        return promoter

    def find_or_create(self, name: str, attrs: Optional[dict[str, str]] = None) -> Resolution:
        name = name.strip()
        attrs = {k: str(v).strip() for k, v in (attrs or {}).items() if k in PROMOTER_FIELDS and v}

        existing = db_module.get_promoter_by_name(self.conn, name)
        if existing:
            filled = {k: v for k, v in attrs.items() if not getattr(existing, k)}
            if filled:
                db_module.update_promoter_fields(self.conn, existing.id, filled)
            return Resolution(existing.id, False)

        promoter_id = db_module.create_promoter(self.conn, Promoter(name=name, **attrs))
        logger.info("Created promoter %r (id=%s)", name, promoter_id)
        return Resolution(promoter_id, True)

    def update_meta(self, promoter_id: int, attrs: dict[str, str]) -> bool:
        self.get(promoter_id)
        values = {k: (v or "").strip() for k, v in attrs.items() if k in PROMOTER_FIELDS}
        if not values:
            return False
        db_module.update_promoter_fields(self.conn, promoter_id, values)
        return True
