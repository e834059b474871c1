"""ERP Core — OrderService: order lifecycle, draft item editing, stock allocation on confirm."""
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from erp_core.core.clock import SystemClock
from erp_core.core.exceptions import (
    InsufficientStockError,
    InvalidOperationError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from erp_core.models.item import InventoryItem
from erp_core.models.ledger import TransactionKind
from erp_core.models.order import Order, OrderItem, OrderStatus, allowed_targets
from erp_core.repositories.item_repository import ItemRepository
from erp_core.repositories.ledger_repository import LedgerRepository
from erp_core.repositories.order_repository import OrderRepository
from erp_core.repositories.sequence_repository import SequenceRepository
from erp_core.services.availability_service import AvailabilityService, StockLine
from erp_core.services.ledger_service import LedgerService, to_decimal
from erp_core.services.sequence_service import SequenceService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderLineInput:
    item_id: UUID
    quantity: Decimal
    unit_price: Decimal | None = None  # defaults to the item's sales price
    discount_amount: Decimal | None = None
    discount_percentage: Decimal | None = None


def _order_total(order: Order) -> Decimal:
    return sum((line.quantity * line.unit_price for line in order.items), Decimal("0"))


def _validated_discounts(
    discount_amount, discount_percentage
) -> tuple[Decimal | None, Decimal | None]:
    amount = percentage = None
    if discount_amount is not None:
        amount = to_decimal(discount_amount, "discount_amount")
        if amount < 0:
            raise ValidationError("Discount amount cannot be negative", field="discount_amount")
    if discount_percentage is not None:
        percentage = to_decimal(discount_percentage, "discount_percentage")
        if not 0 <= percentage <= 100:
            raise ValidationError("Discount percentage must be between 0 and 100", field="discount_percentage")
    return amount, percentage


def _validated_quantity(value) -> Decimal:
    quantity = to_decimal(value, "quantity")
    if quantity <= 0:
        raise ValidationError("Quantity must be greater than zero", field="quantity")
    return quantity


def _validated_price(value) -> Decimal:
    price = to_decimal(value, "unit_price")
    if price < 0:
        raise ValidationError("Unit price cannot be negative", field="unit_price")
    return price


class OrderService:
    """
    Order lifecycle on top of the one transition table in ``models.order``.

    Moving to ``confirmed`` is the only transition with a side effect: it
    allocates stock by appending one ``sale`` per order line, in the same
    transaction as the status change, after checking availability under row
    locks. Every other allowed transition only changes the status.
    """

    def __init__(
        self,
        orders: OrderRepository,
        items: ItemRepository,
        ledger: LedgerRepository,
        sequences: SequenceRepository,
        clock=None,
    ):
        self._orders = orders
        self._items = items
        self._clock = clock or SystemClock()
        self._ledger = LedgerService(items, ledger, self._clock)
        self._availability = AvailabilityService(items, self._ledger)
        self._sequences = SequenceService(sequences, self._clock)
        self._entry_effects: dict[OrderStatus, Callable[[Order], Awaitable[None]]] = {
            OrderStatus.CONFIRMED: self._allocate_stock,
        }

    @classmethod
    def from_uow(cls, uow, clock=None) -> "OrderService":
        return cls(uow.orders, uow.items, uow.ledger, uow.sequences, clock)

    # ── Reads ─────────────────────────────────────────────────────

    async def get_order(self, order_id: UUID) -> Order:
        order = await self._orders.get(order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        return order

    async def list_orders(
        self,
        status: OrderStatus | str | None = None,
        customer_id: UUID | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Order]:
        if status is not None:
            status = self._coerce_status(status)
        return await self._orders.list(status=status, customer_id=customer_id, limit=limit, offset=offset)

    async def allowed_transitions(self, order_id: UUID) -> list[OrderStatus]:
        order = await self.get_order(order_id)
        return sorted(allowed_targets(order.status), key=lambda s: s.value)

    # ── Creation and item editing ─────────────────────────────────

    async def create_order(
        self,
        customer_id: UUID,
        items: list[OrderLineInput] | None = None,
        notes: str | None = None,
    ) -> Order:
        """New ``draft`` order. Lines are validated before an order number is allocated."""
        lines = items or []
        priced = [await self._build_line(line) for line in lines]

        now = self._clock.now()
        order = Order(
            order_number=await self._sequences.next_order_number(),
            customer_id=customer_id,
            status=OrderStatus.DRAFT.value,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        order.items.extend(priced)
        order.total_amount = _order_total(order)
        await self._orders.add(order)
        logger.info("Order %s created for customer %s with %d lines", order.order_number, customer_id, len(priced))
        return order

    async def add_item(self, order_id: UUID, line: OrderLineInput) -> Order:
        order = await self._draft_order(order_id, "added to")
        order.items.append(await self._build_line(line))
        await self._touch(order)
        return order

    async def update_item(
        self,
        order_id: UUID,
        line_id: UUID,
        *,
        quantity: Decimal | None = None,
        unit_price: Decimal | None = None,
        discount_amount: Decimal | None = None,
        discount_percentage: Decimal | None = None,
    ) -> Order:
        """Change the given fields of one line; ``None`` leaves a field as it is."""
        order = await self._draft_order(order_id, "updated on")
        line = self._find_line(order, line_id)

        new_quantity = _validated_quantity(quantity) if quantity is not None else None
        new_price = _validated_price(unit_price) if unit_price is not None else None
        amount, percentage = _validated_discounts(discount_amount, discount_percentage)

        if new_quantity is not None:
            line.quantity = new_quantity
        if new_price is not None:
            line.unit_price = new_price
        if amount is not None:
            line.discount_amount = amount
        if percentage is not None:
            line.discount_percentage = percentage
        await self._touch(order)
        return order

    async def remove_item(self, order_id: UUID, line_id: UUID) -> Order:
        order = await self._draft_order(order_id, "removed from")
        line = self._find_line(order, line_id)
        await self._orders.delete_item(order, line)
        await self._touch(order)
        return order

    # ── Transitions ───────────────────────────────────────────────

    async def transition(self, order_id: UUID, target: OrderStatus | str) -> Order:
        """
        Move the order to ``target``.

        The order row is locked first, so concurrent transitions of the same
        order queue up and each one re-reads the status the previous one left.
        """
        target = self._coerce_status(target)
        order = await self._orders.get(order_id, lock=True)
        if order is None:
            raise NotFoundError("Order", order_id)

        current = OrderStatus(order.status)
        if target not in allowed_targets(current):
            raise InvalidTransitionError(current.value, target.value)

        effect = self._entry_effects.get(target)
        if effect is not None:
            await effect(order)

        order.status = target.value
        order.updated_at = self._clock.now()
        await self._orders.flush()
        logger.info("Order %s: %s -> %s", order.order_number, current.value, target.value)
        return order

    async def _allocate_stock(self, order: Order) -> None:
        lines = [StockLine(item_id=line.item_id, quantity=line.quantity) for line in order.items]
        await self._items.lock(line.item_id for line in lines)

        result = await self._availability.check_availability(lines)
        if not result.sufficient:
            logger.info(
                "Order %s not confirmed, short on %s",
                order.order_number,
                ", ".join(s.name for s in result.shortfalls),
            )
            raise InsufficientStockError(result.shortfalls)

        for line in order.items:
            await self._ledger.record_transaction(
                line.item_id,
                line.quantity,
                TransactionKind.SALE,
                reference=order.order_number,
                note="Stock allocated for order confirmation",
            )

    # ── Helpers ───────────────────────────────────────────────────

    @staticmethod
    def _coerce_status(value: OrderStatus | str) -> OrderStatus:
        try:
            return OrderStatus(value)
        except ValueError:
            raise ValidationError(f"Unknown order status: {value!r}", field="status")

    async def _draft_order(self, order_id: UUID, verb: str) -> Order:
        order = await self._orders.get(order_id, lock=True)
        if order is None:
            raise NotFoundError("Order", order_id)
        if order.status != OrderStatus.DRAFT.value:
            raise InvalidOperationError(
                f"Items can only be {verb} draft orders (order is {order.status})",
                status=order.status,
            )
        return order

    @staticmethod
    def _find_line(order: Order, line_id: UUID) -> OrderItem:
        for line in order.items:
            if line.id == line_id:
                return line
        raise NotFoundError("OrderItem", line_id)

    async def _build_line(self, line: OrderLineInput) -> OrderItem:
        quantity = _validated_quantity(line.quantity)
        amount, percentage = _validated_discounts(line.discount_amount, line.discount_percentage)
        item: InventoryItem | None = await self._items.get(line.item_id)
        if item is None:
            raise NotFoundError("InventoryItem", line.item_id)
        unit_price = _validated_price(line.unit_price) if line.unit_price is not None else item.sales_price
        return OrderItem(
            item_id=item.id,
            quantity=quantity,
            unit_price=unit_price,
            discount_amount=amount,
            discount_percentage=percentage,
            created_at=self._clock.now(),
        )

    async def _touch(self, order: Order) -> None:
        order.total_amount = _order_total(order)
        order.updated_at = self._clock.now()
        await self._orders.flush()
