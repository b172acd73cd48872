"""Audit trail of committed mover transitions."""

import logging
from typing import List

from magic_movers.fleet.models import LogAction, LogEntry, Mover
from magic_movers.fleet.store import LogRepository

logger = logging.getLogger(__name__)


class AuditLog:
    """Append-only record of every committed transition.

    Entries are built here but only persisted by the store, in the same
    unit as the mover update they describe.
    """

    def __init__(self, logs: LogRepository):
        self.logs = logs

    def entry_for(self, mover: Mover, action: LogAction) -> LogEntry:
        """Build the entry recording ``action`` with the mover's current items."""
        return LogEntry(mover_id=mover.id, item_ids=list(mover.items), action=action)

    async def list(self) -> List[LogEntry]:
        """All entries, most recent first."""
        return await self.logs.list_recent()

    async def clear(self) -> int:
        """Administrative reset. Returns the number of entries removed."""
        count = await self.logs.delete_all()
        logger.info(f"Cleared {count} log entries")
        return count
