"""ERP Core — LedgerRepository: append and aggregate inventory transactions. Never updates."""
from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Numeric, case, cast, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from erp_core.models.ledger import InventoryTransaction, TransactionKind

# Signed effect of a row: sales subtract, every other kind adds.
SIGNED_QUANTITY = case(
    (InventoryTransaction.kind == TransactionKind.SALE.value, -InventoryTransaction.quantity),
    else_=InventoryTransaction.quantity,
)

# SQLite sums NUMERIC as a float; the cast brings results back as 4-place Decimals.
QUANTITY_SUM = cast(func.coalesce(func.sum(SIGNED_QUANTITY), 0), Numeric(18, 4))


class LedgerRepository:
    def __init__(self, session: AsyncSession, company_id: UUID):
        self._session = session
        self._company_id = company_id

    async def append(self, tx: InventoryTransaction) -> InventoryTransaction:
        tx.company_id = self._company_id
        self._session.add(tx)
        await self._session.flush()
        return tx

    async def append_many(self, txs: list[InventoryTransaction]) -> list[InventoryTransaction]:
        for tx in txs:
            tx.company_id = self._company_id
        self._session.add_all(txs)
        await self._session.flush()
        return txs

    async def sum_for_item(self, item_id: UUID, as_of: datetime | None = None) -> Decimal:
        q = select(QUANTITY_SUM).where(
            InventoryTransaction.company_id == self._company_id,
            InventoryTransaction.item_id == item_id,
        )
        if as_of is not None:
            q = q.where(InventoryTransaction.created_at <= as_of)
        return (await self._session.execute(q)).scalar_one()

    async def sums_for_items(self, item_ids: Iterable[UUID], as_of: datetime | None = None) -> dict[UUID, Decimal]:
        ids = set(item_ids)
        if not ids:
            return {}
        q = (
            select(InventoryTransaction.item_id, QUANTITY_SUM.label("on_hand"))
            .where(
                InventoryTransaction.company_id == self._company_id,
                InventoryTransaction.item_id.in_(ids),
            )
            .group_by(InventoryTransaction.item_id)
        )
        if as_of is not None:
            q = q.where(InventoryTransaction.created_at <= as_of)
        rows = (await self._session.execute(q)).all()
        sums = {item_id: Decimal("0") for item_id in ids}
        for row in rows:
            sums[row.item_id] = row.on_hand
        return sums

    async def list_for_item(self, item_id: UUID) -> list[InventoryTransaction]:
        """All rows for the item, oldest first."""
        result = await self._session.execute(
            select(InventoryTransaction)
            .where(
                InventoryTransaction.company_id == self._company_id,
                InventoryTransaction.item_id == item_id,
            )
            .order_by(InventoryTransaction.created_at, InventoryTransaction.id)
        )
        return list(result.scalars().all())

    async def list_by_reference(self, reference: str) -> list[InventoryTransaction]:
        result = await self._session.execute(
            select(InventoryTransaction)
            .where(
                InventoryTransaction.company_id == self._company_id,
                InventoryTransaction.reference == reference,
            )
            .order_by(InventoryTransaction.created_at, InventoryTransaction.id)
        )
        return list(result.scalars().all())
