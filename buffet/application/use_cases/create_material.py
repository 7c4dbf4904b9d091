"""Create Material Use Case."""

from buffet.application.dto.requests import CreateMaterialRequest
from buffet.config import get_logger
from buffet.core.entities.material import Material
from buffet.core.interfaces.material_store import IMaterialStore

logger = get_logger(__name__)


class CreateMaterialUseCase:
    """Add a material to the catalogue with its opening stock."""

    def __init__(self, material_store: IMaterialStore | None = None):
        self._material_store = material_store

    async def _get_material_store(self) -> IMaterialStore:
        if self._material_store is None:
            from buffet.infrastructure.storage.sqlite import get_material_store

            self._material_store = await get_material_store()
        return self._material_store

    async def execute(self, request: CreateMaterialRequest) -> Material:
        store = await self._get_material_store()
        material = await store.create_material(
            Material(
                name=request.name,
                unit=request.unit,
                stock=request.stock,
                low_stock_threshold=request.low_stock_threshold,
            )
        )
        logger.info("material_registered", material_id=material.id, unit=material.unit.value)
        return material
