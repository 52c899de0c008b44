"""Plain values returned by the repositories, decoupled from the ORM models."""

from tickets.db.domain.archive import ArchiveRecord
from tickets.db.domain.panel import Panel

__all__ = ["ArchiveRecord", "Panel"]
