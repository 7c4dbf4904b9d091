"""Abstract interface for material storage."""

from abc import ABC, abstractmethod

from buffet.core.entities.material import Material


class IMaterialStore(ABC):
    """
    Interface for material persistence.

    Stock is read-only here; it changes only through
    ``IUnitOfWork.adjust_stock``.
    """

    @abstractmethod
    async def create_material(self, material: Material) -> Material:
        """Create a material with its initial stock."""
        pass

    @abstractmethod
    async def get_material(self, material_id: str) -> Material | None:
        """Get material by ID."""
        pass

    @abstractmethod
    async def get_stock(self, material_id: str) -> float:
        """Get current stock. Raises MaterialNotFoundError if missing."""
        pass

    @abstractmethod
    async def list_materials(self, limit: int = 100, offset: int = 0) -> list[Material]:
        """List materials ordered by name."""
        pass

    @abstractmethod
    async def list_low_stock(self, limit: int = 100) -> list[Material]:
        """List materials whose stock is below their low-stock threshold."""
        pass

    @abstractmethod
    async def update_details(self, material: Material) -> bool:
        """Update name, unit and threshold. Never writes stock. False if missing."""
        pass
