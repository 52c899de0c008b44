import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Final

from tickets.db.errors import RowDecodeError

SNOWFLAKE_MAX: Final = 2**63 - 1
"""Largest id an int8 column can hold. Discord snowflakes stay below it."""


def check_snowflake(name: str, value: Any) -> None:
    """Raise ValueError unless ``value`` is an id that can be stored in an int8 column unchanged."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"{name} is {type(value).__name__}, expected int")
    if not 0 <= value <= SNOWFLAKE_MAX:
        raise ValueError(f"{name}={value} is not a snowflake id")


def check_aware(name: str, value: Any) -> None:
    """Raise ValueError unless ``value`` is a timezone-aware datetime."""
    if not isinstance(value, datetime):
        raise ValueError(f"{name} is {type(value).__name__}, expected datetime")
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name}={value} is a naive datetime, a timezone is required")


def decode_snowflake(table: str, row: Any, name: str, value: Any) -> int:
    """Validate that a value read from the database is a snowflake id."""
    try:
        check_snowflake(name, value)
    except ValueError as e:
        raise RowDecodeError(table, row, str(e)) from e
    return value


@dataclass(frozen=True, slots=True, kw_only=True)
class ArchiveRecord:
    """A closed modmail thread.

    Raises:
        ValueError: If an id is not a snowflake or ``close_time`` is naive. Such values would not read back unchanged.
    """

    id: uuid.UUID = field(default_factory=uuid.uuid4)
    guild_id: int
    user_id: int
    close_time: datetime

    def __post_init__(self) -> None:
        if not isinstance(self.id, uuid.UUID):
            raise ValueError(f"id is {type(self.id).__name__}, expected UUID")
        check_snowflake("guild_id", self.guild_id)
        check_snowflake("user_id", self.user_id)
        check_aware("close_time", self.close_time)

    @classmethod
    def from_row(cls, row: Any) -> "ArchiveRecord":
        """Build a record from a ``(uuid, guild_id, user_id, close_time)`` row.

        Raises:
            RowDecodeError: If any column has an unexpected type or value.
        """
        try:
            archive_id, guild_id, user_id, close_time = row
        except (TypeError, ValueError) as e:
            raise RowDecodeError("modmail_archive", row, "expected 4 columns") from e

        try:
            return cls(id=archive_id, guild_id=guild_id, user_id=user_id, close_time=close_time)
        except ValueError as e:
            raise RowDecodeError("modmail_archive", row, str(e)) from e
