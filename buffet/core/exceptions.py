"""
Domain exceptions for the buffet inventory core.

Every error carries a machine-readable code and the id of the offending
entity in ``details`` so callers can translate it for display.
"""

from typing import Any


class BuffetError(Exception):
    """Base exception for all buffet errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to a plain dictionary for the calling layer."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Storage Exceptions
class StorageError(BuffetError):
    """Base exception for storage operations."""

    pass


class NotFoundError(StorageError):
    """A referenced entity does not exist."""

    def __init__(self, entity: str, entity_id: str, code: str | None = None):
        super().__init__(
            f"{entity} not found: {entity_id}",
            code=code or "NOT_FOUND",
            details={"entity": entity, "entity_id": entity_id},
        )
        self.entity = entity
        self.entity_id = entity_id


class MaterialNotFoundError(NotFoundError):
    """Material not found in storage."""

    def __init__(self, material_id: str):
        super().__init__("Material", material_id, code="MATERIAL_NOT_FOUND")
        self.details["material_id"] = material_id


class PurchaseOrderNotFoundError(NotFoundError):
    """Purchase order not found in storage."""

    def __init__(self, order_id: str):
        super().__init__("Purchase order", order_id, code="PURCHASE_ORDER_NOT_FOUND")
        self.details["order_id"] = order_id


class InventoryCountNotFoundError(NotFoundError):
    """Inventory count not found in storage."""

    def __init__(self, count_id: str):
        super().__init__("Inventory count", count_id, code="INVENTORY_COUNT_NOT_FOUND")
        self.details["count_id"] = count_id


class DrinkNotFoundError(NotFoundError):
    """Drink not found in storage."""

    def __init__(self, drink_id: str):
        super().__init__("Drink", drink_id, code="DRINK_NOT_FOUND")
        self.details["drink_id"] = drink_id


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )


# Inventory Exceptions
class InventoryError(BuffetError):
    """Base exception for stock rule violations."""

    pass


class InvalidTransitionError(InventoryError):
    """Requested purchase order status change is not allowed."""

    def __init__(self, order_id: str, from_status: str, to_status: str):
        super().__init__(
            f"Purchase order {order_id} cannot move from {from_status} to {to_status}",
            code="INVALID_TRANSITION",
            details={
                "order_id": order_id,
                "from_status": from_status,
                "to_status": to_status,
            },
        )


class InsufficientStockError(InventoryError):
    """A decrement or reversal would drive stock negative."""

    def __init__(
        self,
        material_id: str,
        requested: float,
        available: float,
        material_name: str | None = None,
    ):
        label = material_name or material_id
        super().__init__(
            f"Insufficient stock for {label}: requested {requested}, available {available}",
            code="INSUFFICIENT_STOCK",
            details={
                "material_id": material_id,
                "requested": requested,
                "available": available,
            },
        )


class OrderNotFulfilledError(InventoryError):
    """A cancellation returns more of a material than its order consumed."""

    def __init__(
        self,
        order_id: str,
        material_id: str,
        requested: float,
        consumed: float,
    ):
        super().__init__(
            f"Order {order_id} has {consumed} of material {material_id} to return, "
            f"cancellation requested {requested}",
            code="ORDER_NOT_FULFILLED",
            details={
                "order_id": order_id,
                "material_id": material_id,
                "requested": requested,
                "consumed": consumed,
            },
        )


# Concurrency Exceptions
class ConcurrencyError(BuffetError):
    """Base exception for concurrent modification problems."""

    pass


class ConcurrencyConflictError(ConcurrencyError):
    """An entity changed between the read and the write of a unit of work."""

    def __init__(self, entity: str, entity_id: str):
        super().__init__(
            f"{entity} {entity_id} was modified concurrently",
            code="CONCURRENCY_CONFLICT",
            details={"entity": entity, "entity_id": entity_id},
        )


class CommitRetriesExhaustedError(ConcurrencyError):
    """Conflicts persisted through every attempt; the caller may retry later."""

    def __init__(self, operation: str, attempts: int, entity_id: str | None = None):
        super().__init__(
            f"Operation '{operation}' gave up after {attempts} conflicting attempts",
            code="COMMIT_RETRIES_EXHAUSTED",
            details={
                "operation": operation,
                "attempts": attempts,
                "entity_id": entity_id,
            },
        )


# Validation Exceptions
class ValidationError(BuffetError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value is not None else None,
            },
        )


class ConfigurationError(BuffetError):
    """The installation or settings cannot support the requested operation."""

    def __init__(self, message: str, **details):
        super().__init__(message, code="CONFIGURATION_ERROR", details=details)
