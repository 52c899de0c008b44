"""Repository layer for database operations."""

from tickets.db.repos.modmail_archive_repository import ModmailArchiveRepository
from tickets.db.repos.multi_panel_target_repository import MultiPanelTargetRepository

__all__ = ["ModmailArchiveRepository", "MultiPanelTargetRepository"]
