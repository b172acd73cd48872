"""API routes for magic movers, magic items and mission logs."""

import logging
from typing import List, NoReturn, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from magic_movers.fleet.errors import (
    CapacityExceeded,
    FleetError,
    InvalidState,
    NotFound,
    UnknownItem,
)
from magic_movers.fleet.models import Item, LogEntry, Mover
from magic_movers.fleet.service import FleetService

logger = logging.getLogger(__name__)

movers_router = APIRouter(prefix="/api/magic-movers", tags=["magic-movers"])
items_router = APIRouter(prefix="/api/magic-items", tags=["magic-items"])
logs_router = APIRouter(prefix="/api/logs", tags=["logs"])

# Fleet service - will be set by main.py
_service: Optional[FleetService] = None

_STATUS_BY_ERROR = {
    NotFound: 404,
    InvalidState: 400,
    UnknownItem: 400,
    CapacityExceeded: 400,
}


def set_service(service: Optional[FleetService]) -> None:
    """Set the fleet service instance for routes."""
    global _service
    _service = service


def get_service() -> FleetService:
    """Get the fleet service instance."""
    if _service is None:
        raise HTTPException(status_code=500, detail="Fleet service not initialized")
    return _service


def _raise_http(error: FleetError) -> NoReturn:
    """Map a fleet error onto an HTTP error with a kind + detail body."""
    status_code = _STATUS_BY_ERROR.get(type(error), 500)
    if status_code == 500:
        logger.error(f"Fleet error: {error.detail}")
    raise HTTPException(status_code=status_code, detail=error.to_dict())


# ==================== Request/Response Models ====================

class CreateMoverRequest(BaseModel):
    """Request to create a mover."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1)
    weight_limit: float = Field(gt=0, allow_inf_nan=False)


class LoadItemsRequest(BaseModel):
    """Request to load items onto a mover."""
    items: List[str]


class CreateItemRequest(BaseModel):
    """Request to create an item."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1)
    weight: float = Field(gt=0, allow_inf_nan=False)


class MoverResponse(BaseModel):
    """Mover response."""
    id: str
    name: str
    weight_limit: float
    quest_state: str
    completed_missions: int
    items: List[str]
    created_at: str
    updated_at: str


class TransitionResponse(BaseModel):
    """Response from a mission transition."""
    message: str
    mover: MoverResponse


class ItemResponse(BaseModel):
    """Item response."""
    id: str
    name: str
    weight: float
    created_at: str


class LogResponse(BaseModel):
    """Log entry response."""
    id: str
    mover_id: str
    item_ids: List[str]
    action: str
    timestamp: str


class ClearResponse(BaseModel):
    """Response from a bulk clear."""
    message: str
    deleted: int


def _mover_to_response(mover: Mover) -> MoverResponse:
    return MoverResponse(**mover.to_dict())


def _item_to_response(item: Item) -> ItemResponse:
    return ItemResponse(**item.to_dict())


def _log_to_response(entry: LogEntry) -> LogResponse:
    return LogResponse(**entry.to_dict())


# ==================== Mover Endpoints ====================

@movers_router.post("", response_model=MoverResponse, status_code=201)
async def create_mover(request: CreateMoverRequest):
    """Create a new magic mover, resting and empty."""
    service = get_service()
    try:
        mover = await service.create_mover(request.name, request.weight_limit)
    except FleetError as e:
        _raise_http(e)
    return _mover_to_response(mover)


@movers_router.get("", response_model=List[MoverResponse])
async def list_movers():
    """List movers, most completed missions first."""
    service = get_service()
    try:
        movers = await service.list_movers()
    except FleetError as e:
        _raise_http(e)
    return [_mover_to_response(m) for m in movers]


@movers_router.delete("", response_model=ClearResponse)
async def clear_movers():
    """Delete every mover."""
    service = get_service()
    try:
        count = await service.clear_movers()
    except FleetError as e:
        _raise_http(e)
    return ClearResponse(message=f"{count} magic movers cleared successfully", deleted=count)


@movers_router.post("/{mover_id}/load", response_model=TransitionResponse)
async def load_items(mover_id: str, request: LoadItemsRequest):
    """Load items onto a resting mover."""
    service = get_service()
    try:
        mover = await service.load(mover_id, request.items)
    except FleetError as e:
        _raise_http(e)
    return TransitionResponse(
        message="Items successfully loaded", mover=_mover_to_response(mover)
    )


@movers_router.put("/{mover_id}/start-mission", response_model=TransitionResponse)
async def start_mission(mover_id: str):
    """Start the mission of a loaded mover."""
    service = get_service()
    try:
        mover = await service.start_mission(mover_id)
    except FleetError as e:
        _raise_http(e)
    return TransitionResponse(
        message="Mission started successfully", mover=_mover_to_response(mover)
    )


@movers_router.put("/{mover_id}/end-mission", response_model=TransitionResponse)
async def end_mission(mover_id: str):
    """End the mission of a mover that is on one."""
    service = get_service()
    try:
        mover = await service.end_mission(mover_id)
    except FleetError as e:
        _raise_http(e)
    return TransitionResponse(
        message="Mission finished successfully", mover=_mover_to_response(mover)
    )


# ==================== Item Endpoints ====================

@items_router.post("", response_model=ItemResponse, status_code=201)
async def create_item(request: CreateItemRequest):
    """Create a new magic item."""
    service = get_service()
    try:
        item = await service.create_item(request.name, request.weight)
    except FleetError as e:
        _raise_http(e)
    return _item_to_response(item)


@items_router.get("", response_model=List[ItemResponse])
async def list_items():
    """List all magic items."""
    service = get_service()
    try:
        items = await service.list_items()
    except FleetError as e:
        _raise_http(e)
    return [_item_to_response(i) for i in items]


@items_router.delete("", response_model=ClearResponse)
async def clear_items():
    """Delete every magic item."""
    service = get_service()
    try:
        count = await service.clear_items()
    except FleetError as e:
        _raise_http(e)
    return ClearResponse(message=f"{count} magic items cleared successfully", deleted=count)


# ==================== Log Endpoints ====================

@logs_router.get("", response_model=List[LogResponse])
async def list_logs():
    """List mission logs, newest first."""
    service = get_service()
    try:
        entries = await service.list_logs()
    except FleetError as e:
        _raise_http(e)
    return [_log_to_response(entry) for entry in entries]


@logs_router.delete("", response_model=ClearResponse)
async def clear_logs():
    """Delete every mission log entry."""
    service = get_service()
    try:
        count = await service.clear_logs()
    except FleetError as e:
        _raise_http(e)
    return ClearResponse(message=f"{count} logs cleared successfully", deleted=count)
