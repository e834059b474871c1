"""ERP Core — SequenceRepository: locked per company+year counter rows."""
import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from erp_core.models.sequence import OrderSequence

logger = logging.getLogger(__name__)


class SequenceRepository:
    def __init__(self, session: AsyncSession, company_id: UUID):
        self._session = session
        self._company_id = company_id

    async def _locked_counter(self, year: str) -> OrderSequence | None:
        return await self._session.scalar(
            select(OrderSequence)
            .where(OrderSequence.company_id == self._company_id, OrderSequence.year == year)
            .with_for_update()
            .execution_options(populate_existing=True)
        )

    async def next_value(self, year: str) -> int:
        """
        Increment and return the counter for ``year``.

        The counter row stays locked until the caller's transaction ends; a
        rollback gives the value back. The first use of a year creates the row
        under a savepoint, and a concurrent creator losing the unique-constraint
        race falls back to locking the winner's row.
        """
        counter = await self._locked_counter(year)
        if counter is None:
            try:
                async with self._session.begin_nested():
                    self._session.add(OrderSequence(company_id=self._company_id, year=year, last_value=1))
                return 1
            except IntegrityError:
                logger.debug("Order sequence row for %s/%s created concurrently; retrying", self._company_id, year)
                counter = await self._locked_counter(year)
                if counter is None:
                    raise

        counter.last_value += 1
        await self._session.flush()
        return counter.last_value
