"""Repository interfaces for the fleet, plus an in-memory implementation.

The state machine only sees these abstract operations. The PostgreSQL
implementation lives in ``magic_movers.db.fleet_store``.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence

from magic_movers.fleet.models import Item, LogEntry, Mover, QuestState

logger = logging.getLogger(__name__)


class MoverRepository(ABC):
    """Read/write access to movers."""

    @abstractmethod
    async def get(self, mover_id: str) -> Optional[Mover]:
        """Look up a mover by id, None if missing."""

    @abstractmethod
    async def add(self, mover: Mover) -> None:
        """Insert a newly created mover."""

    @abstractmethod
    async def list_by_completed_missions(self) -> List[Mover]:
        """List movers, most completed missions first."""

    @abstractmethod
    async def delete_all(self) -> int:
        """Delete every mover, returning how many were removed."""


class ItemRepository(ABC):
    """Read/write access to items."""

    @abstractmethod
    async def add(self, item: Item) -> None:
        """Insert a newly created item."""

    @abstractmethod
    async def list(self) -> List[Item]:
        """List items in creation order."""

    @abstractmethod
    async def get_many(self, item_ids: Sequence[str]) -> List[Item]:
        """Return the stored items whose id is in ``item_ids``.

        Unknown ids are silently left out; callers compare the result
        against what they asked for.
        """

    @abstractmethod
    async def delete_all(self) -> int:
        """Delete every item, returning how many were removed."""


class LogRepository(ABC):
    """Read access to the audit log.

    Entries are only ever appended through
    :meth:`FleetStore.commit_transition`.
    """

    @abstractmethod
    async def list_recent(self) -> List[LogEntry]:
        """List entries, most recent first."""

    @abstractmethod
    async def delete_all(self) -> int:
        """Delete every entry, returning how many were removed."""


class FleetStore(ABC):
    """Bundle of the three repositories plus the atomic transition commit."""

    movers: MoverRepository
    items: ItemRepository
    logs: LogRepository

    @abstractmethod
    async def commit_transition(
        self,
        mover: Mover,
        expected_state: QuestState,
        expected_version: int,
        entry: LogEntry,
    ) -> bool:
        """Replace a mover and append its log entry as one unit.

        The replace only happens if the stored mover is still in
        ``expected_state`` at ``expected_version``. Returns False (and
        writes nothing) when another operation got there first.
        """

    async def ping(self) -> bool:
        """Check the backing store is reachable."""
        return True


# ==================== In-memory implementation ====================


class _MemoryMovers(MoverRepository):
    def __init__(self, owner: "MemoryFleetStore"):
        self._owner = owner

    async def get(self, mover_id: str) -> Optional[Mover]:
        return self._owner._movers.get(mover_id)

    async def add(self, mover: Mover) -> None:
        async with self._owner._lock:
            self._owner._movers[mover.id] = mover

    async def list_by_completed_missions(self) -> List[Mover]:
        movers = list(self._owner._movers.values())
        return sorted(movers, key=lambda m: (-m.completed_missions, m.created_at))

    async def delete_all(self) -> int:
        async with self._owner._lock:
            count = len(self._owner._movers)
            self._owner._movers.clear()
            return count


class _MemoryItems(ItemRepository):
    def __init__(self, owner: "MemoryFleetStore"):
        self._owner = owner

    async def add(self, item: Item) -> None:
        async with self._owner._lock:
            self._owner._items[item.id] = item

    async def list(self) -> List[Item]:
        return list(self._owner._items.values())

    async def get_many(self, item_ids: Sequence[str]) -> List[Item]:
        wanted = set(item_ids)
        return [item for item_id, item in self._owner._items.items() if item_id in wanted]

    async def delete_all(self) -> int:
        async with self._owner._lock:
            count = len(self._owner._items)
            self._owner._items.clear()
            return count


class _MemoryLogs(LogRepository):
    def __init__(self, owner: "MemoryFleetStore"):
        self._owner = owner

    async def list_recent(self) -> List[LogEntry]:
        # Stable sort on reversed insertion order keeps later appends first on ties.
        entries = list(reversed(self._owner._logs))
        return sorted(entries, key=lambda e: e.timestamp, reverse=True)

    async def delete_all(self) -> int:
        async with self._owner._lock:
            count = len(self._owner._logs)
            self._owner._logs.clear()
            return count


class MemoryFleetStore(FleetStore):
    """Process-local store used for tests and database-less runs."""

    def __init__(self):
        self._lock = asyncio.Lock()
        self._movers: Dict[str, Mover] = {}
        self._items: Dict[str, Item] = {}
        self._logs: List[LogEntry] = []
        self.movers = _MemoryMovers(self)
        self.items = _MemoryItems(self)
        self.logs = _MemoryLogs(self)

    async def commit_transition(
        self,
        mover: Mover,
        expected_state: QuestState,
        expected_version: int,
        entry: LogEntry,
    ) -> bool:
        async with self._lock:
            current = self._movers.get(mover.id)
            if (
                current is None
                or current.quest_state != expected_state
                or current.version != expected_version
            ):
                logger.debug(f"Commit conflict for mover {mover.id}")
                return False
            self._movers[mover.id] = mover
            self._logs.append(entry)
            return True
