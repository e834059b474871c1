"""ERP Core — SequenceService: gap-tolerant, collision-free order numbers."""
import logging

from erp_core.core.clock import SystemClock
from erp_core.repositories.sequence_repository import SequenceRepository

logger = logging.getLogger(__name__)

ORDER_NUMBER_PREFIX = "ORD"


def format_order_number(year: str, value: int) -> str:
    return f"{ORDER_NUMBER_PREFIX}-{year}-{value:05d}"


class SequenceService:
    """
    Allocates ``ORD-{YY}-{NNNNN}`` numbers from a locked per-company, per-year
    counter row. The row lock is held until the caller's transaction ends, so
    two concurrent creators can never read the same value.
    """

    def __init__(self, sequences: SequenceRepository, clock=None):
        self._sequences = sequences
        self._clock = clock or SystemClock()

    async def next_order_number(self) -> str:
        year = self._clock.now().strftime("%y")
        value = await self._sequences.next_value(year)
        number = format_order_number(year, value)
        logger.debug("Allocated order number %s", number)
        return number
