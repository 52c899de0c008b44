"""Process start-up: configuration, logging and schema creation."""

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Final, TypedDict

from dotenv import load_dotenv
from dotenv.main import StrPath

from tickets.db import DatabaseManager


class ApplicationConfig(TypedDict, total=False):
    """Configuration for the ticket storage process."""

    dev_mode: bool
    """Whether we are running in development mode, which echoes SQL and quietens noisy loggers."""
    dotenv_path: StrPath | None
    """The path to the .env file, used to load environment variables. Use None for auto-detection, remove this key to disable loading .env file."""


DEFAULT_CONFIG: Final[ApplicationConfig] = {
    "dev_mode": False,
    "dotenv_path": None,
}


LOG_FORMAT: Final = "[{asctime}] [{levelname:<8}] {name}: {message}"


def setup_logging(dev_mode: bool = False, logs_dir: StrPath = "logs") -> None:
    """Send the records of every logger, SQLAlchemy's and asyncpg's included, to stderr and to ``tickets.log``."""
    formatter = logging.Formatter(LOG_FORMAT, "%Y-%m-%d %H:%M:%S", style="{")

    if dev_mode:
        # See https://github.com/sqlalchemy/sqlalchemy/discussions/10302
        logging.getLogger("sqlalchemy.engine.Engine").handlers = [logging.NullHandler()]  # Avoid duplicate logging

    os.makedirs(logs_dir, exist_ok=True)
    handlers: list[logging.Handler] = [
        logging.StreamHandler(),
        RotatingFileHandler(
            filename=os.path.join(logs_dir, "tickets.log"),
            encoding="utf-8",
            maxBytes=32 * 1024 * 1024,  # 32 MiB
            backupCount=5,
        ),
    ]
    for handler in handlers:
        handler.setFormatter(formatter)
        logging.root.addHandler(handler)
    logging.root.setLevel(logging.INFO)


async def main(config: ApplicationConfig = DEFAULT_CONFIG) -> None:
    """Bring the database schema up to date."""
    if "dotenv_path" in config:
        load_dotenv(config["dotenv_path"])
    dev_mode = config.get("dev_mode", False)
    setup_logging(dev_mode)

    db = DatabaseManager(debug=dev_mode)
    try:
        await db.create_schema()
    finally:
        await db.close()
