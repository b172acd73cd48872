"""Pytest configuration and fixtures."""

import os
from typing import Callable, Dict

import pytest

from magic_movers.fleet.models import Item, Mover, QuestState
from magic_movers.fleet.service import FleetService
from magic_movers.fleet.store import MemoryFleetStore

# Set test environment
os.environ["STORE_BACKEND"] = "memory"
os.environ["LOG_LEVEL"] = "WARNING"


@pytest.fixture
def store() -> MemoryFleetStore:
    """Fresh in-memory fleet store."""
    return MemoryFleetStore()


@pytest.fixture
def service(store) -> FleetService:
    """Fleet service over the in-memory store."""
    return FleetService(store)


@pytest.fixture
def put_mover(store) -> Callable[..., Mover]:
    """Place a mover in a given state directly in the store."""

    def _put(state: QuestState = QuestState.RESTING, **kwargs) -> Mover:
        kwargs.setdefault("name", "Atlas")
        kwargs.setdefault("weight_limit", 10)
        mover = Mover(quest_state=state, **kwargs)
        store._movers[mover.id] = mover
        return mover

    return _put


@pytest.fixture
def put_items(store) -> Callable[..., Dict[str, Item]]:
    """Place items named after the keyword arguments directly in the store."""

    def _put(**weights: float) -> Dict[str, Item]:
        items = {}
        for name, weight in weights.items():
            item = Item(name=name, weight=weight, id=f"IT-{name.upper()}")
            store._items[item.id] = item
            items[name] = item
        return items

    return _put
