"""Create Drink Use Case."""

from buffet.application.dto.requests import CreateDrinkRequest
from buffet.config import get_logger
from buffet.core.entities.drink import Drink, DrinkRecipeItem
from buffet.core.exceptions import MaterialNotFoundError
from buffet.core.interfaces.drink_store import IDrinkStore
from buffet.core.interfaces.material_store import IMaterialStore

logger = get_logger(__name__)


class CreateDrinkUseCase:
    """Add a drink whose recipe references existing materials."""

    def __init__(
        self,
        drink_store: IDrinkStore | None = None,
        material_store: IMaterialStore | None = None,
    ):
        self._drink_store = drink_store
        self._material_store = material_store

    async def _get_drink_store(self) -> IDrinkStore:
        if self._drink_store is None:
            from buffet.infrastructure.storage.sqlite import get_drink_store

            self._drink_store = await get_drink_store()
        return self._drink_store

    async def _get_material_store(self) -> IMaterialStore:
        if self._material_store is None:
            from buffet.infrastructure.storage.sqlite import get_material_store

            self._material_store = await get_material_store()
        return self._material_store

    async def execute(self, request: CreateDrinkRequest) -> Drink:
        mat_store = await self._get_material_store()
        for material_id in dict.fromkeys(line.material_id for line in request.recipe):
            if await mat_store.get_material(material_id) is None:
                raise MaterialNotFoundError(material_id)

        drink_store = await self._get_drink_store()
        drink = await drink_store.create_drink(
            Drink(
                name=request.name,
                price=request.price,
                recipe=[DrinkRecipeItem(**line.model_dump()) for line in request.recipe],
            )
        )
        logger.info("drink_registered", drink_id=drink.id, recipe_lines=len(drink.recipe))
        return drink
