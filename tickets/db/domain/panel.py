from dataclasses import dataclass
from typing import Any

from tickets.db.domain.archive import decode_snowflake
from tickets.db.errors import RowDecodeError


def _decode_str(row: Any, name: str, value: Any, *, nullable: bool = False) -> str | None:
    if value is None and nullable:
        return None
    if not isinstance(value, str):
        raise RowDecodeError("panels", row, f"{name} is {type(value).__name__}, expected str")
    return value


@dataclass(frozen=True, slots=True, kw_only=True)
class Panel:
    """A ticket panel, as seen through a multi-panel. Read only."""

    message_id: int
    channel_id: int
    guild_id: int
    title: str
    content: str
    colour: int
    target_category: int
    reaction_emote: str
    welcome_message: str | None = None

    @classmethod
    def from_row(cls, row: Any) -> "Panel":
        """Build a panel from a row holding the panel columns in declaration order.

        Raises:
            RowDecodeError: If any column has an unexpected type or value.
        """
        try:
            (
                message_id,
                channel_id,
                guild_id,
                title,
                content,
                colour,
                target_category,
                reaction_emote,
                welcome_message,
            ) = row
        except (TypeError, ValueError) as e:
            raise RowDecodeError("panels", row, "expected 9 columns") from e

        if not isinstance(colour, int) or isinstance(colour, bool):
            raise RowDecodeError("panels", row, f"colour is {type(colour).__name__}, expected int")

        return cls(
            message_id=decode_snowflake("panels", row, "message_id", message_id),
            channel_id=decode_snowflake("panels", row, "channel_id", channel_id),
            guild_id=decode_snowflake("panels", row, "guild_id", guild_id),
            title=_decode_str(row, "title", title),  # pyright: ignore[reportArgumentType]
            content=_decode_str(row, "content", content),  # pyright: ignore[reportArgumentType]
            colour=colour,
            target_category=decode_snowflake("panels", row, "target_category", target_category),
            reaction_emote=_decode_str(row, "reaction_emote", reaction_emote),  # pyright: ignore[reportArgumentType]
            welcome_message=_decode_str(row, "welcome_message", welcome_message, nullable=True),
        )
