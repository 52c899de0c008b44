"""
Handles database interactions for the ticket system.

Essentially a wrapper around the SQLAlchemy engine so that callers don't have to deal with the specifics of the database.
"""

import logging
import os

from sqlalchemy import make_url, text
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from tickets.db.errors import RowDecodeError, StoreError
from tickets.db.repos import ModmailArchiveRepository, MultiPanelTargetRepository
from tickets.db.schema import Base

logger = logging.getLogger(__name__)

__all__ = ["DatabaseManager", "RowDecodeError", "StoreError"]


class DatabaseManager:
    """Owns the connection pool and the repositories built on top of it.

    Create one per process and pass it around; it holds no global state.
    """

    def __init__(
        self,
        database_url: str | None = None,
        driver_async: str | None = None,
        *,
        debug: bool = False,
    ):
        """Initializes the DatabaseManager."""
        database_url = database_url or os.environ.get("DATABASE_URL")
        driver_async = driver_async or os.environ.get("DB_DRIVER_ASYNC")

        if not database_url:
            raise RuntimeError(
                "database_url not given and no DATABASE_URL environmental variable found. "
                "Specify DATABASE_URL either with a .env file or a DATABASE_URL environment variable."
            )
        if not driver_async:
            raise RuntimeError("No DB_DRIVER_ASYNC environment variable found.")

        base = make_url(database_url)
        # A driver already named in the URL (e.g. postgresql+psycopg2://) is replaced by the async one
        drivername = base.drivername.split("+", 1)[0]
        self.async_engine = create_async_engine(base.set(drivername=f"{drivername}+{driver_async}"), echo=debug)
        self.async_session = async_sessionmaker(self.async_engine, expire_on_commit=False)

        self.modmail_archive = ModmailArchiveRepository(self.async_session)
        self.multi_panel_targets = MultiPanelTargetRepository(self.async_session)

    async def create_schema(self) -> None:
        """Create the tables and extensions that do not exist yet. Existing objects are left untouched."""
        async with self.async_engine.begin() as conn:
            await conn.execute(text('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"'))
            await conn.run_sync(Base.metadata.create_all, checkfirst=True)
        logger.info("Database schema is up to date on %s", self.async_engine.url.render_as_string(hide_password=True))

    async def close(self) -> None:
        """Dispose of the connection pool."""
        await self.async_engine.dispose()
