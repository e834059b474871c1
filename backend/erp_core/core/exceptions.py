"""ERP Core — Typed exception hierarchy.

Every error carries a machine-readable ``code`` and structured details so the
HTTP layer (and any other caller) can branch on type instead of on message text.

    ERPCoreError
    ├── ValidationError
    ├── NotFoundError
    ├── InvalidTransitionError
    ├── InvalidOperationError
    ├── InsufficientStockError
    └── ConcurrencyConflictError
"""
from typing import Any


class ERPCoreError(Exception):
    """Base class for all core errors."""

    code: str = "ERP_CORE_ERROR"
    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def details(self) -> dict[str, Any]:
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details()}


class ValidationError(ERPCoreError):
    """Malformed input, e.g. a non-positive quantity."""

    code = "VALIDATION_ERROR"
    status_code = 422

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field

    def details(self) -> dict[str, Any]:
        return {"field": self.field} if self.field else {}


class NotFoundError(ERPCoreError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id

    def details(self) -> dict[str, Any]:
        return {"entity": self.entity, "entity_id": str(self.entity_id)}


class InvalidTransitionError(ERPCoreError):
    code = "INVALID_TRANSITION"
    status_code = 409

    def __init__(self, current: str, requested: str):
        super().__init__(f"Invalid status transition from {current} to {requested}")
        self.current = current
        self.requested = requested

    def details(self) -> dict[str, Any]:
        return {"current": self.current, "requested": self.requested}


class InvalidOperationError(ERPCoreError):
    """Order item mutation attempted outside ``draft``."""

    code = "INVALID_OPERATION"
    status_code = 409

    def __init__(self, message: str, status: str | None = None):
        super().__init__(message)
        self.status = status

    def details(self) -> dict[str, Any]:
        return {"status": self.status} if self.status else {}


class InsufficientStockError(ERPCoreError):
    code = "INSUFFICIENT_STOCK"
    status_code = 409

    def __init__(self, shortfalls: list):
        names = ", ".join(
            f"{s.name} (requested: {s.requested}, available: {s.available})" for s in shortfalls
        )
        super().__init__(f"Insufficient stock for items: {names}")
        self.shortfalls = shortfalls

    def details(self) -> dict[str, Any]:
        return {
            "shortfalls": [
                {
                    "item_id": str(s.item_id),
                    "name": s.name,
                    "requested": str(s.requested),
                    "available": str(s.available),
                }
                for s in self.shortfalls
            ]
        }


class ConcurrencyConflictError(ERPCoreError):
    """Storage-level serialization failure. The caller decides whether to retry."""

    code = "CONCURRENCY_CONFLICT"
    status_code = 409
