"""Repository for the panels that make up a multi-panel."""

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from sqlalchemy import Row, delete, select
from sqlalchemy.dialects.postgresql import Insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.sql.base import Executable

from tickets.db import schema
from tickets.db.domain import Panel
from tickets.db.errors import RowDecodeError, StoreError
from tickets.db.schema import MultiPanelTarget

logger = logging.getLogger(__name__)


def _insert_targets() -> Insert:
    """INSERT into multi_panel_targets that skips pairs which are already present."""
    return pg_insert(MultiPanelTarget).on_conflict_do_nothing(
        index_elements=[MultiPanelTarget.multi_panel_id, MultiPanelTarget.panel_id]
    )


class MultiPanelTargetRepository:
    """Repository for the many-to-many association between multi-panels and panels.

    Removing a multi-panel or a panel removes its associations through the foreign keys, so this repository never
    has to clean up after either of them.
    """

    def __init__(self, session: async_sessionmaker[AsyncSession]):
        self._session = session

    async def get_panels_for_multi_panel(self, multi_panel_id: int) -> list[Panel]:
        """Get the panels of a multi-panel.

        Args:
            multi_panel_id: The multi-panel id.

        Returns:
            The panels in storage order. Rows that cannot be decoded are skipped.
        """
        stmt = (
            select(
                schema.Panel.message_id,
                schema.Panel.channel_id,
                schema.Panel.guild_id,
                schema.Panel.title,
                schema.Panel.content,
                schema.Panel.colour,
                schema.Panel.target_category,
                schema.Panel.reaction_emote,
                schema.Panel.welcome_message,
            )
            .join(MultiPanelTarget, MultiPanelTarget.panel_id == schema.Panel.message_id)
            .where(MultiPanelTarget.multi_panel_id == multi_panel_id)
        )
        rows = await self._fetch(stmt)

        panels: list[Panel] = []
        for row in rows:
            try:
                panels.append(Panel.from_row(row))
            except RowDecodeError as e:
                logger.warning("Skipping panel row of multi-panel %s: %s", multi_panel_id, e)
        return panels

    async def get_multi_panels_for_panel(self, panel_id: int) -> list[int]:
        """Get the ids of the multi-panels a panel belongs to.

        Args:
            panel_id: The panel's message id.
        """
        stmt = select(MultiPanelTarget.multi_panel_id).where(MultiPanelTarget.panel_id == panel_id)
        rows = await self._fetch(stmt)

        multi_panel_ids: list[int] = []
        for (multi_panel_id,) in rows:
            if not isinstance(multi_panel_id, int):
                logger.warning(
                    "Skipping multi_panel_targets row with multi_panel_id %r of panel %s", multi_panel_id, panel_id
                )
                continue
            multi_panel_ids.append(multi_panel_id)
        return multi_panel_ids

    async def associate(self, multi_panel_id: int, panel_id: int) -> None:
        """Add a panel to a multi-panel. Does nothing if it is already a member."""
        await self._execute(_insert_targets().values(multi_panel_id=multi_panel_id, panel_id=panel_id))

    async def dissociate(self, multi_panel_id: int, panel_id: int) -> None:
        """Remove a panel from a multi-panel. Does nothing if it is not a member."""
        stmt = delete(MultiPanelTarget).where(
            MultiPanelTarget.multi_panel_id == multi_panel_id, MultiPanelTarget.panel_id == panel_id
        )
        await self._execute(stmt)

    async def dissociate_all(self, multi_panel_id: int) -> None:
        """Remove every panel from a multi-panel."""
        await self._execute(delete(MultiPanelTarget).where(MultiPanelTarget.multi_panel_id == multi_panel_id))

    async def replace(self, multi_panel_id: int, panel_ids: Iterable[int]) -> None:
        """Make ``panel_ids`` the exact set of panels of a multi-panel, in a single transaction.

        Args:
            multi_panel_id: The multi-panel id.
            panel_ids: The message ids of the panels. Duplicates are ignored.

        Raises:
            StoreError: If any statement fails, in which case nothing is changed.
        """
        panel_ids = list(dict.fromkeys(panel_ids))
        async with self._session() as session:
            try:
                await session.execute(
                    delete(MultiPanelTarget).where(MultiPanelTarget.multi_panel_id == multi_panel_id)
                )
                if panel_ids:
                    await session.execute(
                        _insert_targets(),
                        [{"multi_panel_id": multi_panel_id, "panel_id": panel_id} for panel_id in panel_ids],
                    )
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise StoreError(f"Failed to replace the panels of multi-panel {multi_panel_id}") from e

    async def _fetch(self, stmt: Executable) -> Sequence[Row[Any]]:
        async with self._session() as session:
            try:
                result = await session.execute(stmt)
            except SQLAlchemyError as e:
                raise StoreError("Failed to query multi_panel_targets") from e
            return result.all()

    async def _execute(self, stmt: Executable) -> None:
        async with self._session() as session:
            try:
                await session.execute(stmt)
                await session.commit()
            except SQLAlchemyError as e:
                raise StoreError("Failed to write multi_panel_targets") from e
