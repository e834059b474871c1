"""ERP Core — BOMRepository: the (single) bill of materials per manufactured item."""
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from erp_core.models.bom import BillOfMaterial


class BOMRepository:
    def __init__(self, session: AsyncSession, company_id: UUID):
        self._session = session
        self._company_id = company_id

    async def get_for_item(self, item_id: UUID) -> BillOfMaterial | None:
        """BOM with items and their component rows (selectin loaded)."""
        return await self._session.scalar(
            select(BillOfMaterial).where(
                BillOfMaterial.item_id == item_id,
                BillOfMaterial.company_id == self._company_id,
            )
        )

    async def add(self, bom: BillOfMaterial) -> BillOfMaterial:
        bom.company_id = self._company_id
        self._session.add(bom)
        await self._session.flush()
        return bom

    async def flush(self) -> None:
        await self._session.flush()

    async def delete(self, bom: BillOfMaterial) -> None:
        await self._session.delete(bom)
        await self._session.flush()
