"""Shared fixtures: a throwaway SQLite database per test, company-scoped units of work, seed helpers."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REPLENISHMENT_CACHE_TTL", "0")

from decimal import Decimal  # noqa: E402
from uuid import UUID, uuid4  # noqa: E402

import pytest  # noqa: E402

import erp_core.models  # noqa: E402,F401  (registers every table on Base.metadata)
from erp_core.core.clock import FixedClock  # noqa: E402
from erp_core.db.base import Base  # noqa: E402
from erp_core.db.session import create_engine_from_url, create_session_maker  # noqa: E402
from erp_core.db.unit_of_work import UnitOfWork  # noqa: E402
from erp_core.models.bom import BillOfMaterial, BOMItem  # noqa: E402
from erp_core.models.item import InventoryItem, ItemKind  # noqa: E402
from erp_core.models.ledger import TransactionKind  # noqa: E402
from erp_core.services.ledger_service import LedgerService  # noqa: E402


class Seeder:
    """Commits catalog rows and stock in their own units of work, the way catalog management would."""

    def __init__(self, uow_factory, clock: FixedClock):
        self._uow = uow_factory
        self.clock = clock

    async def item(
        self,
        sku: str,
        *,
        kind: ItemKind = ItemKind.RAW_MATERIAL,
        name: str | None = None,
        cost_price="0",
        sales_price="0",
        reorder_level="0",
        minimum_stock_level="0",
        lead_time_days: int = 0,
        company_id: UUID | None = None,
    ) -> InventoryItem:
        async with self._uow(company_id) as uow:
            return await uow.items.add(
                InventoryItem(
                    sku=sku,
                    name=name or sku,
                    kind=kind.value,
                    cost_price=Decimal(str(cost_price)),
                    sales_price=Decimal(str(sales_price)),
                    reorder_level=Decimal(str(reorder_level)),
                    minimum_stock_level=Decimal(str(minimum_stock_level)),
                    lead_time_days=lead_time_days,
                    created_at=self.clock.now(),
                )
            )

    async def stock(self, item_id: UUID, quantity, kind: TransactionKind = TransactionKind.PURCHASE) -> None:
        async with self._uow() as uow:
            await LedgerService.from_uow(uow, self.clock).record_transaction(item_id, quantity, kind)

    async def bom(self, item_id: UUID, components: list[tuple[InventoryItem, str]], labor="0") -> None:
        async with self._uow() as uow:
            await uow.boms.add(
                BillOfMaterial(
                    item_id=item_id,
                    manual_labor_cost=Decimal(str(labor)),
                    items=[
                        BOMItem(component_item_id=c.id, component=await uow.items.get(c.id), quantity=Decimal(q))
                        for c, q in components
                    ],
                )
            )

    async def on_hand(self, item_id: UUID) -> Decimal:
        async with self._uow() as uow:
            return await LedgerService.from_uow(uow, self.clock).quantity_on_hand(item_id)


@pytest.fixture
async def engine(tmp_path):
    engine = create_engine_from_url(f"sqlite+aiosqlite:///{tmp_path / 'erp_core.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return create_session_maker(engine)


@pytest.fixture
def company_id() -> UUID:
    return uuid4()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def uow_factory(session_maker, company_id):
    def make(for_company: UUID | None = None) -> UnitOfWork:
        return UnitOfWork(session_maker, for_company or company_id)

    return make


@pytest.fixture
def seed(uow_factory, clock) -> Seeder:
    return Seeder(uow_factory, clock)
