"""ERP Core — ItemRepository: company-scoped reads of the item catalog."""
from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from erp_core.models.item import InventoryItem, ItemKind


class ItemRepository:
    def __init__(self, session: AsyncSession, company_id: UUID):
        self._session = session
        self._company_id = company_id

    async def get(self, item_id: UUID) -> InventoryItem | None:
        return await self._session.scalar(
            select(InventoryItem).where(
                InventoryItem.id == item_id,
                InventoryItem.company_id == self._company_id,
            )
        )

    async def get_many(self, item_ids: Iterable[UUID]) -> dict[UUID, InventoryItem]:
        ids = set(item_ids)
        if not ids:
            return {}
        result = await self._session.execute(
            select(InventoryItem).where(
                InventoryItem.id.in_(ids),
                InventoryItem.company_id == self._company_id,
            )
        )
        return {item.id: item for item in result.scalars().all()}

    async def lock(self, item_ids: Iterable[UUID]) -> dict[UUID, InventoryItem]:
        """SELECT ... FOR UPDATE on the given items, always in id order so two lockers cannot deadlock."""
        ids = sorted(set(item_ids))
        if not ids:
            return {}
        result = await self._session.execute(
            select(InventoryItem)
            .where(InventoryItem.id.in_(ids), InventoryItem.company_id == self._company_id)
            .order_by(InventoryItem.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return {item.id: item for item in result.scalars().all()}

    async def list(self, kind: ItemKind | None = None) -> list[InventoryItem]:
        q = select(InventoryItem).where(InventoryItem.company_id == self._company_id)
        if kind is not None:
            q = q.where(InventoryItem.kind == kind.value)
        q = q.order_by(InventoryItem.name, InventoryItem.sku)
        result = await self._session.execute(q)
        return list(result.scalars().all())

    async def add(self, item: InventoryItem) -> InventoryItem:
        item.company_id = self._company_id
        self._session.add(item)
        await self._session.flush()
        return item
