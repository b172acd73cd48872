"""State machine for mover missions - resting, loading, on-mission."""

import logging
from dataclasses import replace
from typing import Dict, NamedTuple, Optional, Sequence

from magic_movers.fleet.audit_log import AuditLog
from magic_movers.fleet.errors import InvalidState, NotFound
from magic_movers.fleet.load_planner import LoadPlanner
from magic_movers.fleet.models import LogAction, Mover, QuestState, utcnow
from magic_movers.fleet.store import FleetStore

logger = logging.getLogger(__name__)


class Transition(NamedTuple):
    """One edge of the mission lifecycle."""
    source: QuestState
    target: QuestState
    action: LogAction


class StateMachine:
    """Runs mover transitions and commits them together with their log entry.

    Every transition reads the mover, checks its state, builds the next
    mover value and hands both to the store in one commit. Nothing is
    written before the state check passes.
    """

    TRANSITIONS: Dict[str, Transition] = {
        "load": Transition(QuestState.RESTING, QuestState.LOADING, LogAction.LOADING),
        "start-mission": Transition(
            QuestState.LOADING, QuestState.ON_MISSION, LogAction.STARTING_MISSION
        ),
        "end-mission": Transition(
            QuestState.ON_MISSION, QuestState.RESTING, LogAction.ENDING_MISSION
        ),
    }

    def __init__(
        self,
        store: FleetStore,
        planner: Optional[LoadPlanner] = None,
        audit_log: Optional[AuditLog] = None,
    ):
        """Initialize state machine.

        Args:
            store: Persistence for movers, items and logs
            planner: Load feasibility checker (built from the store if omitted)
            audit_log: Audit log (built from the store if omitted)
        """
        self.store = store
        self.planner = planner or LoadPlanner(store.items)
        self.audit_log = audit_log or AuditLog(store.logs)

    def can_transition(self, mover: Mover, name: str) -> bool:
        """Check if the named transition is legal from the mover's state."""
        transition = self.TRANSITIONS.get(name)
        return transition is not None and mover.quest_state == transition.source

    async def load(self, mover_id: str, item_ids: Sequence[str]) -> Mover:
        """Load items onto a resting mover.

        Raises:
            NotFound: Unknown mover
            InvalidState: Mover is not resting
            UnknownItem: Empty, duplicated or unknown item ids
            CapacityExceeded: Items are heavier than the weight limit
        """
        mover = await self._get_mover(mover_id)
        self._check_source(mover, "load")

        plan = await self.planner.plan(mover, item_ids)
        updated = self._advance(mover, "load", items=plan.item_ids)
        # Loading logs the new cargo.
        return await self._commit(mover, updated, "load", snapshot=updated)

    async def start_mission(self, mover_id: str) -> Mover:
        """Send a loaded mover on its mission."""
        mover = await self._get_mover(mover_id)
        self._check_source(mover, "start-mission")

        updated = self._advance(mover, "start-mission")
        return await self._commit(mover, updated, "start-mission", snapshot=mover)

    async def end_mission(self, mover_id: str) -> Mover:
        """Finish a mission, unloading the mover and counting the mission."""
        mover = await self._get_mover(mover_id)
        self._check_source(mover, "end-mission")

        updated = self._advance(
            mover,
            "end-mission",
            items=[],
            completed_missions=mover.completed_missions + 1,
        )
        # Logged items are the ones carried before unloading.
        return await self._commit(mover, updated, "end-mission", snapshot=mover)

    # ==================== Helpers ====================

    async def _get_mover(self, mover_id: str) -> Mover:
        mover = await self.store.movers.get(mover_id)
        if mover is None:
            raise NotFound("Mover", mover_id)
        return mover

    def _check_source(self, mover: Mover, name: str) -> None:
        if not self.can_transition(mover, name):
            transition = self.TRANSITIONS[name]
            logger.info(
                f"Rejected {name} for mover {mover.id}: "
                f"state {mover.quest_state.value}, needs {transition.source.value}"
            )
            raise InvalidState(
                mover.id,
                actual=mover.quest_state.value,
                required=transition.source.value,
            )

    def _advance(self, mover: Mover, name: str, **changes) -> Mover:
        transition = self.TRANSITIONS[name]
        return replace(
            mover,
            quest_state=transition.target,
            version=mover.version + 1,
            updated_at=utcnow(),
            **changes,
        )

    async def _commit(self, current: Mover, updated: Mover, name: str, snapshot: Mover) -> Mover:
        transition = self.TRANSITIONS[name]
        entry = self.audit_log.entry_for(snapshot, transition.action)

        committed = await self.store.commit_transition(
            updated,
            expected_state=current.quest_state,
            expected_version=current.version,
            entry=entry,
        )
        if not committed:
            # Someone else moved this mover between our read and our write.
            latest = await self._get_mover(current.id)
            logger.info(f"Concurrent update on mover {current.id}, rejecting {name}")
            raise InvalidState(
                current.id,
                actual=latest.quest_state.value,
                required=transition.source.value,
            )

        logger.info(
            f"Mover {updated.id} {transition.source.value} -> {transition.target.value} "
            f"({len(entry.item_ids)} items)"
        )
        return updated
