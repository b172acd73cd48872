"""Load feasibility - resolve item ids to weights and check mover capacity."""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import List, Sequence

from magic_movers.fleet.errors import CapacityExceeded, UnknownItem
from magic_movers.fleet.models import Item, Mover
from magic_movers.fleet.store import ItemRepository

logger = logging.getLogger(__name__)


@dataclass
class LoadPlan:
    """Validated set of items a mover can carry."""

    item_ids: List[str] = field(default_factory=list)
    items: List[Item] = field(default_factory=list)
    total_weight: float = 0.0


class LoadPlanner:
    """Decides whether a list of items fits on a mover.

    The planner never writes anything; the state machine commits the
    returned plan.
    """

    def __init__(self, items: ItemRepository):
        """Initialize load planner.

        Args:
            items: Repository used to resolve item ids to weights
        """
        self.items = items

    async def plan(self, mover: Mover, item_ids: Sequence[str]) -> LoadPlan:
        """Resolve and validate a candidate load.

        Args:
            mover: Mover that would carry the items
            item_ids: Requested item ids

        Returns:
            LoadPlan with the items in request order

        Raises:
            UnknownItem: If the list is empty, has duplicates, or names
                items that do not exist
            CapacityExceeded: If the total weight is over the limit
        """
        requested = list(item_ids)
        if not requested:
            raise UnknownItem(detail="At least one item id is required")

        duplicates = [item_id for item_id, count in Counter(requested).items() if count > 1]
        if duplicates:
            raise UnknownItem(duplicate_ids=duplicates)

        found = {item.id: item for item in await self.items.get_many(requested)}
        missing = [item_id for item_id in requested if item_id not in found]
        if missing:
            raise UnknownItem(item_ids=missing)

        resolved = [found[item_id] for item_id in requested]
        total = sum(item.weight for item in resolved)
        if total > mover.weight_limit:
            raise CapacityExceeded(total=total, limit=mover.weight_limit)

        logger.debug(
            f"Load plan for {mover.id}: {len(resolved)} items, "
            f"{total:g}/{mover.weight_limit:g}"
        )
        return LoadPlan(item_ids=requested, items=resolved, total_weight=total)
