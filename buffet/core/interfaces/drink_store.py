"""Abstract interface for drink storage."""

from abc import ABC, abstractmethod

from buffet.core.entities.drink import Drink


class IDrinkStore(ABC):
    """Interface for drink and recipe persistence."""

    @abstractmethod
    async def create_drink(self, drink: Drink) -> Drink:
        """Create a drink with its recipe."""
        pass

    @abstractmethod
    async def get_drink(self, drink_id: str) -> Drink | None:
        """Get drink by ID with recipe."""
        pass

    @abstractmethod
    async def list_drinks(self) -> list[Drink]:
        """List drinks ordered by name."""
        pass
