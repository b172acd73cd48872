"""Fleet service - the operations exposed to the API and the CLI."""

import logging
from typing import List, Sequence

from magic_movers.fleet.audit_log import AuditLog
from magic_movers.fleet.load_planner import LoadPlanner
from magic_movers.fleet.models import Item, LogEntry, Mover
from magic_movers.fleet.state_machine import StateMachine
from magic_movers.fleet.store import FleetStore

logger = logging.getLogger(__name__)


class FleetService:
    """Facade over the store, the state machine and the audit log."""

    def __init__(self, store: FleetStore):
        self.store = store
        self.audit_log = AuditLog(store.logs)
        self.state_machine = StateMachine(
            store,
            planner=LoadPlanner(store.items),
            audit_log=self.audit_log,
        )

    # ==================== Movers ====================

    async def create_mover(self, name: str, weight_limit: float) -> Mover:
        """Create a resting, empty mover."""
        mover = Mover(name=name, weight_limit=weight_limit)
        await self.store.movers.add(mover)
        logger.info(f"Created mover {mover.id} ({mover.name}, limit {weight_limit:g})")
        return mover

    async def list_movers(self) -> List[Mover]:
        """Movers ordered by completed missions, highest first."""
        return await self.store.movers.list_by_completed_missions()

    async def clear_movers(self) -> int:
        count = await self.store.movers.delete_all()
        logger.info(f"Cleared {count} movers")
        return count

    async def load(self, mover_id: str, item_ids: Sequence[str]) -> Mover:
        return await self.state_machine.load(mover_id, item_ids)

    async def start_mission(self, mover_id: str) -> Mover:
        return await self.state_machine.start_mission(mover_id)

    async def end_mission(self, mover_id: str) -> Mover:
        return await self.state_machine.end_mission(mover_id)

    # ==================== Items ====================

    async def create_item(self, name: str, weight: float) -> Item:
        item = Item(name=name, weight=weight)
        await self.store.items.add(item)
        logger.info(f"Created item {item.id} ({item.name}, weight {weight:g})")
        return item

    async def list_items(self) -> List[Item]:
        return await self.store.items.list()

    async def clear_items(self) -> int:
        count = await self.store.items.delete_all()
        logger.info(f"Cleared {count} items")
        return count

    # ==================== Logs ====================

    async def list_logs(self) -> List[LogEntry]:
        return await self.audit_log.list()

    async def clear_logs(self) -> int:
        return await self.audit_log.clear()
