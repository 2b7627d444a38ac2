from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import BigInteger, DateTime
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator

# Discord ids are 64-bit snowflakes
Snowflake = BigInteger


class TZDateTime(TypeDecorator):
    """DateTime that always binds and returns aware UTC values.

    SQLite stores datetimes without an offset, so values are converted to
    UTC on the way in and tagged as UTC on the way out.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect: Any) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError(f"naive datetime {value!r} cannot be stored as UTC")
        return value.astimezone(timezone.utc)

    def process_result_value(self, value: Optional[datetime], dialect: Any) -> Optional[datetime]:
        if value is None or value.tzinfo is not None:
            return value
        return value.replace(tzinfo=timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Declarative base for statcat's tables."""

    type_annotation_map = {int: Snowflake}
