"""Integration tests for the multi-panel to panel association."""

import pytest
from sqlalchemy import text

from tickets.db import DatabaseManager, StoreError, schema
from tickets.db.domain import Panel

pytestmark = pytest.mark.integration


def make_panel(message_id: int, title: str) -> schema.Panel:
    return schema.Panel(
        message_id=message_id,
        channel_id=200,
        guild_id=1,
        title=title,
        content=f"{title} panel",
        colour=0x2ECC71,
        target_category=300,
        reaction_emote="📩",
    )


@pytest.fixture
async def panels(pg_db_manager: DatabaseManager) -> tuple[int, int, list[int]]:
    """Two multi-panels and three panels, nothing associated yet."""
    async with pg_db_manager.async_session() as session:
        session.add_all([make_panel(100, "Support"), make_panel(101, "Appeals"), make_panel(102, "Reports")])
        first = schema.MultiPanel(message_id=500, channel_id=200, guild_id=1)
        second = schema.MultiPanel(message_id=501, channel_id=200, guild_id=1)
        session.add_all([first, second])
        await session.commit()
        return first.id, second.id, [100, 101, 102]


async def count_targets(db: DatabaseManager) -> int:
    async with db.async_session() as session:
        return (await session.execute(text("SELECT COUNT(*) FROM multi_panel_targets"))).scalar_one()


async def test_get_panels_for_multi_panel(pg_db_manager: DatabaseManager, panels):
    first, _, panel_ids = panels
    repo = pg_db_manager.multi_panel_targets
    await repo.associate(first, panel_ids[0])
    await repo.associate(first, panel_ids[2])

    result = await repo.get_panels_for_multi_panel(first)

    assert sorted(p.message_id for p in result) == [100, 102]
    support = next(p for p in result if p.message_id == 100)
    assert support == Panel(
        message_id=100,
        channel_id=200,
        guild_id=1,
        title="Support",
        content="Support panel",
        colour=0x2ECC71,
        target_category=300,
        reaction_emote="📩",
    )


async def test_get_multi_panels_for_panel(pg_db_manager: DatabaseManager, panels):
    first, second, panel_ids = panels
    repo = pg_db_manager.multi_panel_targets
    await repo.associate(first, panel_ids[0])
    await repo.associate(second, panel_ids[0])

    assert sorted(await repo.get_multi_panels_for_panel(panel_ids[0])) == sorted([first, second])
    assert await repo.get_multi_panels_for_panel(panel_ids[1]) == []


async def test_associate_twice_leaves_one_row(pg_db_manager: DatabaseManager, panels):
    first, _, panel_ids = panels
    repo = pg_db_manager.multi_panel_targets

    await repo.associate(first, panel_ids[0])
    await repo.associate(first, panel_ids[0])

    assert await count_targets(pg_db_manager) == 1


async def test_dissociate(pg_db_manager: DatabaseManager, panels):
    first, _, panel_ids = panels
    repo = pg_db_manager.multi_panel_targets
    await repo.associate(first, panel_ids[0])
    await repo.associate(first, panel_ids[1])

    await repo.dissociate(first, panel_ids[0])
    await repo.dissociate(first, panel_ids[2])  # Not a member, no-op

    assert [p.message_id for p in await repo.get_panels_for_multi_panel(first)] == [101]


async def test_dissociate_all(pg_db_manager: DatabaseManager, panels):
    first, second, panel_ids = panels
    repo = pg_db_manager.multi_panel_targets
    for panel_id in panel_ids:
        await repo.associate(first, panel_id)
    await repo.associate(second, panel_ids[0])

    await repo.dissociate_all(first)

    assert await repo.get_panels_for_multi_panel(first) == []
    assert [p.message_id for p in await repo.get_panels_for_multi_panel(second)] == [100]


async def test_replace(pg_db_manager: DatabaseManager, panels):
    first, _, panel_ids = panels
    repo = pg_db_manager.multi_panel_targets
    await repo.associate(first, panel_ids[0])

    await repo.replace(first, [panel_ids[1], panel_ids[2], panel_ids[1]])

    assert sorted(p.message_id for p in await repo.get_panels_for_multi_panel(first)) == [101, 102]


async def test_replace_is_atomic(pg_db_manager: DatabaseManager, panels):
    first, _, panel_ids = panels
    repo = pg_db_manager.multi_panel_targets
    await repo.associate(first, panel_ids[0])

    with pytest.raises(StoreError):
        await repo.replace(first, [panel_ids[1], 999])  # 999 is not a panel

    assert [p.message_id for p in await repo.get_panels_for_multi_panel(first)] == [100]


async def test_associate_unknown_panel_raises_store_error(pg_db_manager: DatabaseManager, panels):
    first, _, _ = panels
    with pytest.raises(StoreError):
        await pg_db_manager.multi_panel_targets.associate(first, 999)


async def test_deleting_a_multi_panel_cascades(pg_db_manager: DatabaseManager, panels):
    first, second, panel_ids = panels
    repo = pg_db_manager.multi_panel_targets
    await repo.associate(first, panel_ids[0])
    await repo.associate(second, panel_ids[0])

    async with pg_db_manager.async_session() as session:
        await session.execute(text("DELETE FROM multi_panels WHERE id = :id"), {"id": first})
        await session.commit()

    assert await repo.get_multi_panels_for_panel(panel_ids[0]) == [second]


async def test_panel_changes_cascade(pg_db_manager: DatabaseManager, panels):
    first, _, panel_ids = panels
    repo = pg_db_manager.multi_panel_targets
    await repo.associate(first, panel_ids[0])
    await repo.associate(first, panel_ids[1])

    async with pg_db_manager.async_session() as session:
        await session.execute(text("UPDATE panels SET message_id = 110 WHERE message_id = 100"))
        await session.execute(text("DELETE FROM panels WHERE message_id = 101"))
        await session.commit()

    assert await repo.get_multi_panels_for_panel(110) == [first]
    assert [p.message_id for p in await repo.get_panels_for_multi_panel(first)] == [110]
