"""A projection tracking which tables currently have an open tab."""

from __future__ import annotations

from typing import Any, ClassVar
from uuid import UUID

from esrc.cafe.tab import Tab, TabClosed, TabOpened
from esrc.project import Context, Project


class ActiveTables(Project):
    """The table number of every open tab, keyed by tab ID."""

    event_group: ClassVar[Any] = Tab.event_type

    def __init__(self) -> None:
        self._table_numbers: dict[UUID, int] = {}

    async def is_active(self, table_number: int) -> bool:
        """Whether any open tab is for ``table_number``."""
        return table_number in self._table_numbers.values()

    async def project(self, context: Context) -> None:
        """Record opened tabs and forget closed ones."""
        match context.event:
            case TabOpened(table_number=table_number):
                self._table_numbers[context.id] = table_number
            case TabClosed():
                self._table_numbers.pop(context.id, None)