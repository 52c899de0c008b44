"""Errors raised by the storage layer."""

from typing import Any


class StoreError(Exception):
    """Base for *all* storage failures that are not a plain "no rows" result."""


class RowDecodeError(StoreError):
    def __init__(self, table: str, row: Any, reason: str) -> None:
        self.table = table
        self.row = row
        self.reason = reason
        super().__init__(f"Could not decode row {row!r} from {table}: {reason}")
