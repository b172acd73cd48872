"""Error taxonomy for the mover lifecycle.

Every error carries a ``kind`` and a human readable ``detail`` so the HTTP
and CLI layers can report it without knowing the concrete class.
"""

from typing import Any, Dict, List, Optional, Sequence


class FleetError(Exception):
    """Base class for all fleet errors."""

    kind = "FleetError"

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a structured kind + detail value."""
        return {"kind": self.kind, "detail": self.detail}


class NotFound(FleetError):
    """No mover (or item) exists with the given id."""

    kind = "NotFound"

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["entity"] = self.entity
        data["id"] = self.entity_id
        return data


class InvalidState(FleetError):
    """Transition attempted from the wrong source state."""

    kind = "InvalidState"

    def __init__(self, mover_id: str, actual: str, required: str):
        self.mover_id = mover_id
        self.actual = actual
        self.required = required
        super().__init__(
            f"Mover {mover_id} must be {required} for this action, current: {actual}"
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["actual"] = self.actual
        data["required"] = self.required
        return data


class UnknownItem(FleetError):
    """One or more requested item ids cannot be used for a load.

    Raised for ids that do not resolve to a stored item, for ids that
    appear more than once in a single request, and for an empty request.
    """

    kind = "UnknownItem"

    def __init__(
        self,
        item_ids: Sequence[str] = (),
        duplicate_ids: Sequence[str] = (),
        detail: Optional[str] = None,
    ):
        self.item_ids: List[str] = list(item_ids)
        self.duplicate_ids: List[str] = list(duplicate_ids)
        if detail is None:
            parts = []
            if self.item_ids:
                parts.append(f"unknown item ids: {', '.join(self.item_ids)}")
            if self.duplicate_ids:
                parts.append(f"duplicate item ids: {', '.join(self.duplicate_ids)}")
            detail = "; ".join(parts) or "No item ids given"
        super().__init__(detail)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["item_ids"] = self.item_ids
        data["duplicate_ids"] = self.duplicate_ids
        return data


class CapacityExceeded(FleetError):
    """Total item weight is over the mover's weight limit."""

    kind = "CapacityExceeded"

    def __init__(self, total: float, limit: float):
        self.total = total
        self.limit = limit
        super().__init__(f"Total weight {total:g} exceeds the mover's weight limit {limit:g}")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["total"] = self.total
        data["limit"] = self.limit
        return data


class StoreFailure(FleetError):
    """Persistence layer failed while serving a request."""

    kind = "StoreFailure"

    def __init__(self, operation: str, reason: str = ""):
        self.operation = operation
        self.reason = reason
        detail = f"Store failure during {operation}"
        if reason:
            detail = f"{detail}: {reason}"
        super().__init__(detail)
