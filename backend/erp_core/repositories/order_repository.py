"""ERP Core — OrderRepository: company-scoped order reads/writes."""
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from erp_core.models.order import Order, OrderStatus


class OrderRepository:
    def __init__(self, session: AsyncSession, company_id: UUID):
        self._session = session
        self._company_id = company_id

    async def get(self, order_id: UUID, *, lock: bool = False) -> Order | None:
        """Fetch order with its items. ``lock=True`` holds the order row until the transaction ends."""
        q = select(Order).where(Order.id == order_id, Order.company_id == self._company_id)
        if lock:
            q = q.with_for_update().execution_options(populate_existing=True)
        return await self._session.scalar(q)

    async def add(self, order: Order) -> Order:
        order.company_id = self._company_id
        self._session.add(order)
        await self._session.flush()
        return order

    async def flush(self) -> None:
        await self._session.flush()

    async def delete_item(self, order: Order, line) -> None:
        order.items.remove(line)
        await self._session.flush()

    async def list(
        self,
        *,
        status: OrderStatus | None = None,
        customer_id: UUID | None = None,
        created_from: datetime | None = None,
        limit: int | None = 50,
        offset: int = 0,
    ) -> list[Order]:
        q = select(Order).where(Order.company_id == self._company_id)
        if status is not None:
            q = q.where(Order.status == status.value)
        if customer_id is not None:
            q = q.where(Order.customer_id == customer_id)
        if created_from is not None:
            q = q.where(Order.created_at >= created_from)
        q = q.order_by(Order.created_at.desc()).offset(offset).limit(limit)
        result = await self._session.execute(q)
        return list(result.scalars().all())
