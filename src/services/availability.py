from datetime import date
from typing import Dict, Iterable, Optional
from sqlalchemy import func, update
from sqlalchemy.orm import Session
from src.models.database import InventoryItem, Order, OrderItem
from src.services.exceptions import InsufficientStockError, NotFoundError
import logging

logger = logging.getLogger(__name__)


def ranges_overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    """
    Half-open interval test for [start_a, end_a) and [start_b, end_b).

    A rental returned on day D and one picked up on day D do not overlap.
    """
    return start_a < end_b and end_a > start_b


class AvailabilityService:
    """
    Answers how many units of an item are committed by active orders and
    guards order writes against over-booking.

    Callers that write must use reserve() inside their own transaction: it
    claims the inventory rows before reading committed quantities, so two
    concurrent writers for the same item are serialized by the database.
    """

    def __init__(self, db: Session):
        self.db = db

    def committed_quantity(
        self,
        inventory_item_id: int,
        pick_up_date: date,
        delivery_date: date,
        exclude_order_id: Optional[int] = None,
    ) -> int:
        """Units of the item held by active orders overlapping the window"""
        query = (
            self.db.query(func.coalesce(func.sum(OrderItem.quantity), 0))
            .select_from(OrderItem)
            .join(Order, OrderItem.order_id == Order.id)
            .filter(
                OrderItem.inventory_item_id == inventory_item_id,
                Order.completed.is_(False),
                # Same predicate as ranges_overlap(), evaluated by the database
                Order.pick_up_date < delivery_date,
                Order.delivery_date > pick_up_date,
            )
        )
        if exclude_order_id is not None:
            query = query.filter(Order.id != exclude_order_id)
        return int(query.scalar())

    def currently_rented(self, inventory_item_id: int) -> int:
        """Units of the item held by any active order, whatever the dates"""
        total = (
            self.db.query(func.coalesce(func.sum(OrderItem.quantity), 0))
            .select_from(OrderItem)
            .join(Order, OrderItem.order_id == Order.id)
            .filter(
                OrderItem.inventory_item_id == inventory_item_id,
                Order.completed.is_(False),
            )
            .scalar()
        )
        return int(total)

    def check_availability(
        self,
        inventory_item_id: int,
        pick_up_date: date,
        delivery_date: date,
        exclude_order_id: Optional[int] = None,
    ) -> dict:
        """Read-only availability query. available is not clamped at zero."""
        item = self.db.query(InventoryItem).filter(InventoryItem.id == inventory_item_id).first()
        if not item:
            raise NotFoundError(f"Inventory item {inventory_item_id} not found")

        rented_out = self.committed_quantity(
            inventory_item_id, pick_up_date, delivery_date, exclude_order_id
        )
        return {
            "inventory_item_id": item.id,
            "rented_out": rented_out,
            "available": item.total_quantity - rented_out,
        }

    def claim_items(self, inventory_item_ids: Iterable[int]) -> Dict[int, InventoryItem]:
        """
        Take a write lock on each inventory row, in ascending id order.

        Bumping the version is the first write of the transaction, so on
        SQLite it acquires the database write lock and on PostgreSQL the row
        lock. Any later reads in the transaction see every order committed
        before the lock was granted.
        """
        ids = sorted(set(inventory_item_ids))
        for item_id in ids:
            claimed = self.db.execute(
                update(InventoryItem)
                .where(InventoryItem.id == item_id)
                .values(version=InventoryItem.version + 1)
                .execution_options(synchronize_session=False)
            ).rowcount
            if claimed == 0:
                raise NotFoundError(f"Inventory item {item_id} not found")

        items = (
            self.db.query(InventoryItem)
            .filter(InventoryItem.id.in_(ids))
            .populate_existing()
            .all()
        )
        return {item.id: item for item in items}

    def reserve(
        self,
        requested: Dict[int, int],
        pick_up_date: date,
        delivery_date: date,
        exclude_order_id: Optional[int] = None,
    ) -> Dict[int, InventoryItem]:
        """
        Claim the requested items and verify each quantity fits the window.

        requested maps inventory item id to the total quantity asked for.
        Returns the claimed items by id. Does not commit or roll back.
        """
        items = self.claim_items(requested.keys())

        for item_id in sorted(requested):
            item = items[item_id]
            quantity = requested[item_id]
            rented_out = self.committed_quantity(
                item_id, pick_up_date, delivery_date, exclude_order_id
            )
            available = item.total_quantity - rented_out
            if quantity > available:
                logger.warning(
                    f"Rejected {quantity} x {item.name} for {pick_up_date}..{delivery_date}: "
                    f"only {available} available"
                )
                raise InsufficientStockError(item.name, requested=quantity, available=available)

        return items
