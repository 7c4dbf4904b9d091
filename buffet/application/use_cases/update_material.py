"""Update Material Details Use Case."""

from buffet.application.dto.requests import UpdateMaterialRequest
from buffet.config import get_logger
from buffet.core.entities.material import Material
from buffet.core.exceptions import MaterialNotFoundError
from buffet.core.interfaces.material_store import IMaterialStore

logger = get_logger(__name__)


class UpdateMaterialDetailsUseCase:
    """
    Edit the name, unit or low-stock threshold of a material.

    Stock is never touched here; it only moves through audited operations.
    """

    def __init__(self, material_store: IMaterialStore | None = None):
        self._material_store = material_store

    async def _get_material_store(self) -> IMaterialStore:
        if self._material_store is None:
            from buffet.infrastructure.storage.sqlite import get_material_store

            self._material_store = await get_material_store()
        return self._material_store

    async def execute(self, request: UpdateMaterialRequest) -> Material:
        store = await self._get_material_store()

        material = await store.get_material(request.material_id)
        if material is None:
            raise MaterialNotFoundError(request.material_id)

        changes = request.model_dump(
            exclude={"material_id"}, exclude_none=True
        )
        updated = material.model_copy(update=changes)

        if not await store.update_details(updated):
            raise MaterialNotFoundError(request.material_id)

        logger.info(
            "material_details_changed",
            material_id=request.material_id,
            fields=sorted(changes),
        )
        return updated
