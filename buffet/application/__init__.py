"""Application layer: request DTOs, use cases and the operations facade."""

from buffet.application.operations import InventoryOperations

__all__ = ["InventoryOperations"]
