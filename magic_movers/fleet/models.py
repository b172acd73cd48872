"""Data models for the fleet - Mover, Item, LogEntry."""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List
from uuid import uuid4


class QuestState(str, Enum):
    """Mover lifecycle state."""
    RESTING = "resting"
    LOADING = "loading"
    ON_MISSION = "on-mission"


class LogAction(str, Enum):
    """Action recorded in the audit log."""
    LOADING = "loading"
    STARTING_MISSION = "starting mission"
    ENDING_MISSION = "ending mission"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_mover_id() -> str:
    """Generate Mover ID: MV-XXXXXXXXXXXX."""
    return f"MV-{uuid4().hex[:12].upper()}"


def generate_item_id() -> str:
    """Generate Item ID: IT-XXXXXXXXXXXX."""
    return f"IT-{uuid4().hex[:12].upper()}"


def generate_log_id() -> str:
    """Generate LogEntry ID: LG-XXXXXXXXXXXX."""
    return f"LG-{uuid4().hex[:12].upper()}"


def _require_name(name: str) -> None:
    if not name or not name.strip():
        raise ValueError("name must not be empty")


def _require_positive(label: str, value: float) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{label} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise ValueError(f"{label} must be finite, got {value!r}")
    if not value > 0:
        raise ValueError(f"{label} must be strictly positive, got {value!r}")


@dataclass(frozen=True)
class Item:
    """A unit of cargo with a fixed weight."""

    name: str
    weight: float
    id: str = field(default_factory=generate_item_id)
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        _require_name(self.name)
        _require_positive("weight", self.weight)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "weight": self.weight,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class Mover:
    """A fleet unit with a weight capacity and a mission lifecycle.

    Movers are immutable values; a transition produces a new Mover with
    ``version`` bumped by one, which the store commits against the
    previously read version.
    """

    name: str
    weight_limit: float
    id: str = field(default_factory=generate_mover_id)
    quest_state: QuestState = QuestState.RESTING
    completed_missions: int = 0
    items: List[str] = field(default_factory=list)
    version: int = 0
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        _require_name(self.name)
        _require_positive("weight_limit", self.weight_limit)
        if self.completed_missions < 0:
            raise ValueError("completed_missions must not be negative")
        if len(set(self.items)) != len(self.items):
            raise ValueError("items must be unique")
        if self.quest_state == QuestState.RESTING and self.items:
            raise ValueError("a resting mover cannot carry items")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "weight_limit": self.weight_limit,
            "quest_state": self.quest_state.value,
            "completed_missions": self.completed_missions,
            "items": list(self.items),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class LogEntry:
    """Immutable audit record of one committed transition."""

    mover_id: str
    item_ids: List[str]
    action: LogAction
    id: str = field(default_factory=generate_log_id)
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "mover_id": self.mover_id,
            "item_ids": list(self.item_ids),
            "action": self.action.value,
            "timestamp": self.timestamp.isoformat(),
        }

