import uuid
from datetime import datetime

from sqlalchemy import (
    TIMESTAMP,
    UUID,
    BigInteger,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase, Mapped, MappedAsDataclass, mapped_column
from sqlalchemy.sql import func


class Base(AsyncAttrs, DeclarativeBase):
    pass


class ModmailArchive(MappedAsDataclass, Base):
    """A closed modmail thread."""

    __tablename__ = "modmail_archive"
    __table_args__ = (
        Index("modmail_archive_guild_id_close_time", "guild_id", "close_time"),
        Index("modmail_archive_user_id_close_time", "user_id", "close_time"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        "uuid", UUID(as_uuid=True), primary_key=True, server_default=func.uuid_generate_v4()
    )
    guild_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    close_time: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)


# The two tables below belong to the panel feature. Only the columns this package reads or
# references are declared here, so that the foreign keys and the join in MultiPanelTargetRepository resolve.
class Panel(MappedAsDataclass, Base):
    """A ticket panel message."""

    __tablename__ = "panels"
    message_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    channel_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    guild_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(String, nullable=False)
    colour: Mapped[int] = mapped_column(Integer, nullable=False)
    target_category: Mapped[int] = mapped_column(BigInteger, nullable=False)
    reaction_emote: Mapped[str] = mapped_column(String(32), nullable=False)
    welcome_message: Mapped[str | None] = mapped_column(String, default=None)


class MultiPanel(MappedAsDataclass, Base):
    """A message that groups several panels behind one select menu."""

    __tablename__ = "multi_panels"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, init=False)
    message_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    channel_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    guild_id: Mapped[int] = mapped_column(BigInteger, nullable=False)


class MultiPanelTarget(MappedAsDataclass, Base):
    """Association table between multi-panels and their member panels."""

    __tablename__ = "multi_panel_targets"
    multi_panel_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("multi_panels.id", ondelete="CASCADE"), primary_key=True
    )
    panel_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("panels.message_id", ondelete="CASCADE", onupdate="CASCADE"), primary_key=True
    )
