"""ERP Core — MarginService: revenue, cost and margin for order lines, orders and customers."""
import calendar
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from erp_core.config import get_settings
from erp_core.core.clock import SystemClock
from erp_core.core.exceptions import NotFoundError, ValidationError
from erp_core.models.order import OrderStatus
from erp_core.repositories.order_repository import OrderRepository
from erp_core.services.bom_service import BOMCostEngine
from erp_core.services.ledger_service import to_decimal

ZERO = Decimal("0")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class MarginLine:
    item_id: UUID
    quantity: Decimal
    unit_price: Decimal
    discount_amount: Decimal | None = None
    discount_percentage: Decimal | None = None


@dataclass(frozen=True)
class MarginResult:
    total_revenue: Decimal
    total_cost: Decimal
    total_margin: Decimal
    margin_percentage: Decimal
    item_count: int


@dataclass(frozen=True)
class CustomerMargin:
    customer_id: UUID
    period: str
    order_count: int
    total_revenue: Decimal
    total_cost: Decimal
    total_margin: Decimal
    margin_percentage: Decimal


@dataclass(frozen=True)
class MarginComparison:
    difference: Decimal
    is_above_average: bool
    description: str


class MarginStatus(str, Enum):
    GOOD = "good"
    ACCEPTABLE = "acceptable"
    LOW = "low"
    NEGATIVE = "negative"


def line_revenue(line: MarginLine) -> Decimal:
    """``quantity * unit_price`` less both discounts, never below zero."""
    quantity = to_decimal(line.quantity, "quantity")
    gross = quantity * to_decimal(line.unit_price, "unit_price")
    revenue = gross
    if line.discount_amount:
        revenue -= to_decimal(line.discount_amount, "discount_amount")
    if line.discount_percentage:
        revenue -= gross * to_decimal(line.discount_percentage, "discount_percentage") / HUNDRED
    return max(ZERO, revenue)


def margin_status(margin_percentage: Decimal) -> MarginStatus:
    if margin_percentage >= 30:
        return MarginStatus.GOOD
    if margin_percentage >= 15:
        return MarginStatus.ACCEPTABLE
    if margin_percentage >= 0:
        return MarginStatus.LOW
    return MarginStatus.NEGATIVE


def compare_to_customer_average(current: Decimal, average: Decimal) -> MarginComparison:
    """Compare one margin percentage against the customer's average."""
    diff = Decimal(str(current)) - Decimal(str(average))
    if abs(diff) < 1:
        description = "Similar to customer average"
    else:
        direction = "above" if diff > 0 else "below"
        description = f"{abs(diff):.1f}% {direction} customer average"
    return MarginComparison(difference=diff, is_above_average=diff > 0, description=description)


def months_before(moment: datetime, months: int) -> datetime:
    """Same day-of-month ``months`` earlier, clamped to the end of shorter months."""
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


class MarginService:
    def __init__(self, cost_engine: BOMCostEngine, orders: OrderRepository, clock=None):
        self._costs = cost_engine
        self._orders = orders
        self._clock = clock or SystemClock()

    @classmethod
    def from_uow(cls, uow, clock=None) -> "MarginService":
        return cls(BOMCostEngine.from_uow(uow), uow.orders, clock)

    async def calculate_margin(self, lines: list[MarginLine]) -> MarginResult:
        """
        Revenue is the discounted line total; cost is ``quantity * unit cost``
        where unit cost comes from the BOM cost engine. The percentage is 0 when
        revenue is not positive.
        """
        revenue = ZERO
        cost = ZERO
        unit_costs: dict[UUID, Decimal] = {}
        for line in lines:
            quantity = to_decimal(line.quantity, "quantity")
            if quantity <= 0:
                raise ValidationError("Quantity must be greater than zero", field="quantity")
            if line.item_id not in unit_costs:
                unit_costs[line.item_id] = await self._costs.unit_cost(line.item_id)
            revenue += line_revenue(line)
            cost += quantity * unit_costs[line.item_id]

        margin = revenue - cost
        percentage = margin / revenue * HUNDRED if revenue > 0 else ZERO
        return MarginResult(
            total_revenue=revenue,
            total_cost=cost,
            total_margin=margin,
            margin_percentage=percentage,
            item_count=len(lines),
        )

    async def order_margin(self, order_id: UUID) -> MarginResult:
        order = await self._orders.get(order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        return await self.calculate_margin([self._as_margin_line(i) for i in order.items])

    async def customer_margin(self, customer_id: UUID, months: int | None = None) -> CustomerMargin:
        """Margin over the customer's invoiced orders created in the trailing ``months``."""
        if months is None:
            months = get_settings().DEFAULT_MARGIN_MONTHS
        if months <= 0:
            raise ValidationError("months must be positive", field="months")
        since = months_before(self._clock.now(), months)
        orders = await self._orders.list(
            status=OrderStatus.INVOICED,
            customer_id=customer_id,
            created_from=since,
            limit=None,
        )
        result = await self.calculate_margin(
            [self._as_margin_line(i) for order in orders for i in order.items]
        )
        return CustomerMargin(
            customer_id=customer_id,
            period=f"Last {months} months",
            order_count=len(orders),
            total_revenue=result.total_revenue,
            total_cost=result.total_cost,
            total_margin=result.total_margin,
            margin_percentage=result.margin_percentage,
        )

    @staticmethod
    def _as_margin_line(item) -> MarginLine:
        return MarginLine(
            item_id=item.item_id,
            quantity=item.quantity,
            unit_price=item.unit_price,
            discount_amount=item.discount_amount,
            discount_percentage=item.discount_percentage,
        )
