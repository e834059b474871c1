"""ERP Core — UnitOfWork: one AsyncSession, one database transaction, typed repositories."""
import logging
from collections.abc import Awaitable, Callable
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from erp_core.core.exceptions import ConcurrencyConflictError
from erp_core.repositories.bom_repository import BOMRepository
from erp_core.repositories.item_repository import ItemRepository
from erp_core.repositories.ledger_repository import LedgerRepository
from erp_core.repositories.order_repository import OrderRepository
from erp_core.repositories.sequence_repository import SequenceRepository

logger = logging.getLogger(__name__)

# serialization_failure, deadlock_detected
SERIALIZATION_SQLSTATES = {"40001", "40P01"}


def is_serialization_failure(exc: DBAPIError) -> bool:
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in SERIALIZATION_SQLSTATES:
        return True
    return "database is locked" in str(orig)


class UnitOfWork:
    """
    Usage::

        async with UnitOfWork(async_session_maker, company_id) as uow:
            await OrderService.from_uow(uow).transition(order_id, OrderStatus.CONFIRMED)

    Commits on clean exit, rolls back on any exception. Every repository is
    scoped to ``company_id`` and shares the same session, so everything done
    inside the block commits together or not at all.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession], company_id: UUID):
        self._session_maker = session_maker
        self.company_id = company_id
        self.session: AsyncSession | None = None
        self._after_commit: list[Callable[[], Awaitable[None]]] = []

    async def __aenter__(self) -> "UnitOfWork":
        self.session = self._session_maker()
        self.items = ItemRepository(self.session, self.company_id)
        self.ledger = LedgerRepository(self.session, self.company_id)
        self.orders = OrderRepository(self.session, self.company_id)
        self.boms = BOMRepository(self.session, self.company_id)
        self.sequences = SequenceRepository(self.session, self.company_id)
        self._after_commit = []
        if self.session.bind.dialect.name == "postgresql":
            # transaction-local, activates the RLS policies on company_id
            await self.session.execute(
                text("SELECT set_config('app.company_id', :cid, true)"),
                {"cid": str(self.company_id)},
            )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        try:
            if exc_type is not None:
                await self.session.rollback()
                if isinstance(exc_val, DBAPIError) and is_serialization_failure(exc_val):
                    logger.warning("Concurrency conflict for company %s: %s", self.company_id, exc_val.orig)
                    raise ConcurrencyConflictError("Concurrent update detected; retry the request") from exc_val
                return False
            try:
                await self.session.commit()
            except DBAPIError as exc:
                await self.session.rollback()
                if is_serialization_failure(exc):
                    logger.warning("Concurrency conflict on commit for company %s: %s", self.company_id, exc.orig)
                    raise ConcurrencyConflictError("Concurrent update detected; retry the request") from exc
                raise
        finally:
            await self.session.close()

        for callback in self._after_commit:
            try:
                await callback()
            except Exception as exc:
                logger.warning("After-commit hook failed for company %s: %s", self.company_id, exc)
        return False

    def on_commit(self, callback: Callable[[], Awaitable[None]]) -> None:
        """Run ``callback`` only once the transaction has committed."""
        self._after_commit.append(callback)


UnitOfWorkFactory = Callable[[UUID], UnitOfWork]
