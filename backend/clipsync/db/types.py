"""Column helpers shared by all models."""

import uuid
from datetime import timezone

from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator


class UTCDateTime(TypeDecorator):
    """
    Store datetimes as naive UTC, return them as aware UTC.
    SQLite has no timezone support, so every value is normalized on the way in;
    this keeps string comparisons in WHERE clauses consistent.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


def new_id() -> str:
    """Fresh UUID4 as string (primary key for all tables)."""
    return str(uuid.uuid4())
