"""Fleet module - mover lifecycle, load planning and audit log."""

from magic_movers.fleet.audit_log import AuditLog
from magic_movers.fleet.errors import (
    CapacityExceeded,
    FleetError,
    InvalidState,
    NotFound,
    StoreFailure,
    UnknownItem,
)
from magic_movers.fleet.load_planner import LoadPlan, LoadPlanner
from magic_movers.fleet.models import Item, LogAction, LogEntry, Mover, QuestState
from magic_movers.fleet.service import FleetService
from magic_movers.fleet.state_machine import StateMachine
from magic_movers.fleet.store import FleetStore, MemoryFleetStore

__all__ = [
    "AuditLog",
    "CapacityExceeded",
    "FleetError",
    "FleetService",
    "FleetStore",
    "InvalidState",
    "Item",
    "LoadPlan",
    "LoadPlanner",
    "LogAction",
    "LogEntry",
    "MemoryFleetStore",
    "Mover",
    "NotFound",
    "QuestState",
    "StateMachine",
    "StoreFailure",
    "UnknownItem",
]
