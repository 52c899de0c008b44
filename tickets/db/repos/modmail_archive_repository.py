"""Repository for closed modmail threads, with keyset pagination over the close time."""

import logging
import uuid
from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import Row, Select, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import aliased

from tickets.db.domain import ArchiveRecord
from tickets.db.errors import RowDecodeError, StoreError
from tickets.db.schema import ModmailArchive

logger = logging.getLogger(__name__)

_COLUMNS = (ModmailArchive.id, ModmailArchive.guild_id, ModmailArchive.user_id, ModmailArchive.close_time)


def page_statement(
    filters: Mapping[str, int],
    limit: int,
    *,
    after: uuid.UUID | None = None,
    before: uuid.UUID | None = None,
) -> Select[Any]:
    """Build the query for one page of archives.

    Args:
        filters: Column name to value, e.g. ``{"guild_id": 1}``. Applied to the page and to the cursor lookup.
        limit: The maximum number of rows.
        after: Restrict the page to archives closed strictly after this archive.
        before: Restrict the page to archives closed strictly before this archive.

    Raises:
        ValueError: If both ``after`` and ``before`` are given.
    """
    if after is not None and before is not None:
        raise ValueError("Cannot paginate with both 'after' and 'before', pick one direction.")

    stmt = select(*_COLUMNS).where(*(getattr(ModmailArchive, name) == value for name, value in filters.items()))

    cursor = after if after is not None else before
    if cursor is not None:
        # Aliased so that the subquery is not correlated to the outer modmail_archive
        anchor = aliased(ModmailArchive, name="anchor")
        anchor_time = (
            select(anchor.close_time)
            .where(anchor.id == cursor, *(getattr(anchor, name) == value for name, value in filters.items()))
            .limit(1)
            .scalar_subquery()
        )
        if after is not None:
            stmt = stmt.where(ModmailArchive.close_time > anchor_time)
        else:
            stmt = stmt.where(ModmailArchive.close_time < anchor_time)

    # The id only breaks ties so that a page is deterministic, the window is defined by close time alone.
    return stmt.order_by(ModmailArchive.close_time.desc(), ModmailArchive.id.desc()).limit(limit)


class ModmailArchiveRepository:
    """Repository for pure database operations on modmail archives.

    Every listing is ordered by close time, newest first. The optional ``after`` and ``before`` cursors are
    archive ids: the cursor is resolved to its close time by a subquery that is scoped by the same filter as the
    listing itself. A cursor that does not exist within the filter resolves to NULL, so the page is empty.
    """

    def __init__(self, session: async_sessionmaker[AsyncSession]):
        self._session = session

    async def get(self, archive_id: uuid.UUID) -> ArchiveRecord | None:
        """Get an archive by its id.

        Args:
            archive_id: The archive's uuid.

        Returns:
            The archive if found, otherwise None.

        Raises:
            StoreError: If the query fails.
            RowDecodeError: If the stored row cannot be decoded.
        """
        stmt = select(*_COLUMNS).where(ModmailArchive.id == archive_id)
        rows = await self._fetch(stmt)
        if not rows:
            return None
        return ArchiveRecord.from_row(rows[0])

    async def insert(self, archive: ArchiveRecord) -> None:
        """Insert an archive. Does nothing if an archive with the same id already exists.

        Args:
            archive: The archive to insert.

        Raises:
            StoreError: If the insert fails.
        """
        stmt = (
            pg_insert(ModmailArchive)
            .values(
                {
                    ModmailArchive.id: archive.id,
                    ModmailArchive.guild_id: archive.guild_id,
                    ModmailArchive.user_id: archive.user_id,
                    ModmailArchive.close_time: archive.close_time,
                }
            )
            .on_conflict_do_nothing(index_elements=[ModmailArchive.id])
        )
        async with self._session() as session:
            try:
                await session.execute(stmt)
                await session.commit()
            except SQLAlchemyError as e:
                raise StoreError(f"Failed to insert archive {archive.id}") from e

    async def list_by_guild(
        self,
        guild_id: int,
        limit: int,
        *,
        after: uuid.UUID | None = None,
        before: uuid.UUID | None = None,
    ) -> list[ArchiveRecord]:
        """List the archives of a guild.

        Args:
            guild_id: The guild to list archives for.
            limit: The maximum number of archives to return.
            after: Only return archives closed after this archive.
            before: Only return archives closed before this archive.

        Returns:
            Up to ``limit`` archives, most recently closed first.

        Raises:
            ValueError: If both ``after`` and ``before`` are given.
            StoreError: If the query fails.
        """
        return await self._list({"guild_id": guild_id}, limit, after=after, before=before)

    async def list_by_user(self, user_id: int, limit: int, *, after: uuid.UUID | None = None) -> list[ArchiveRecord]:
        """List the archives of a user across all guilds.

        Only forward paging is supported for this listing.

        Args:
            user_id: The user to list archives for.
            limit: The maximum number of archives to return.
            after: Only return archives closed after this archive.

        Returns:
            Up to ``limit`` archives, most recently closed first.

        Raises:
            StoreError: If the query fails.
        """
        return await self._list({"user_id": user_id}, limit, after=after)

    async def list_by_guild_and_user(
        self,
        guild_id: int,
        user_id: int,
        limit: int,
        *,
        after: uuid.UUID | None = None,
        before: uuid.UUID | None = None,
    ) -> list[ArchiveRecord]:
        """List the archives of a user within one guild.

        Args:
            guild_id: The guild to list archives for.
            user_id: The user to list archives for.
            limit: The maximum number of archives to return.
            after: Only return archives closed after this archive.
            before: Only return archives closed before this archive.

        Returns:
            Up to ``limit`` archives, most recently closed first.

        Raises:
            ValueError: If both ``after`` and ``before`` are given.
            StoreError: If the query fails.
        """
        return await self._list({"guild_id": guild_id, "user_id": user_id}, limit, after=after, before=before)

    async def _list(
        self,
        filters: Mapping[str, int],
        limit: int,
        *,
        after: uuid.UUID | None = None,
        before: uuid.UUID | None = None,
    ) -> list[ArchiveRecord]:
        stmt = page_statement(filters, limit, after=after, before=before)
        rows = await self._fetch(stmt)

        archives: list[ArchiveRecord] = []
        for row in rows:
            try:
                archives.append(ArchiveRecord.from_row(row))
            except RowDecodeError as e:
                logger.warning("Skipping archive row: %s", e)
        return archives

    async def _fetch(self, stmt: Select[Any]) -> Sequence[Row[Any]]:
        async with self._session() as session:
            try:
                result = await session.execute(stmt)
            except SQLAlchemyError as e:
                raise StoreError("Failed to query modmail archives") from e
            return result.all()
