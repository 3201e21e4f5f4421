from typing import Dict, List
from sqlalchemy import func, update
from sqlalchemy.orm import Session, selectinload
from src.models.database import Order, OrderFee, OrderItem, SpecialPrice
from src.models.schemas import OrderCreate, OrderItemCreate, OrderUpdate
from src.services.availability import AvailabilityService
from src.services.exceptions import NotFoundError, OrderAlreadyCompletedError
import logging

logger = logging.getLogger(__name__)


def requested_quantities(items: List[OrderItemCreate]) -> Dict[int, int]:
    """Total quantity asked for per inventory item, summing repeated lines"""
    requested: Dict[int, int] = {}
    for item in items:
        requested[item.inventory_item_id] = requested.get(item.inventory_item_id, 0) + item.quantity
    return requested


class OrderService:
    """
    Order book operations. Every write runs in one transaction: the
    availability check and the insert commit together or not at all.
    """

    def __init__(self, db: Session):
        self.db = db
        self.availability = AvailabilityService(db)

    def list_active_orders(self) -> List[Order]:
        return (
            self.db.query(Order)
            .options(selectinload(Order.items), selectinload(Order.fees))
            .filter(Order.completed.is_(False))
            .order_by(Order.created_at.desc(), Order.id.desc())
            .all()
        )

    def list_completed_orders(self) -> List[Order]:
        return (
            self.db.query(Order)
            .options(selectinload(Order.items), selectinload(Order.fees))
            .filter(Order.completed.is_(True))
            .order_by(Order.pick_up_date.desc(), Order.id.desc())
            .all()
        )

    def get_order(self, order_id: int) -> Order:
        order = self.db.query(Order).filter(Order.id == order_id).first()
        if not order:
            raise NotFoundError(f"Order {order_id} not found")
        return order

    def create_order(self, order_data: OrderCreate) -> Order:
        """
        Create an order after checking every item against the stock that
        overlapping active orders already hold.
        """
        logger.info(
            f"Creating order for {order_data.customer_name} "
            f"({order_data.pick_up_date} to {order_data.delivery_date})"
        )
        requested = requested_quantities(order_data.items)

        try:
            inventory = self.availability.reserve(
                requested, order_data.pick_up_date, order_data.delivery_date
            )

            order = Order(
                customer_name=order_data.customer_name,
                pick_up_date=order_data.pick_up_date,
                delivery_date=order_data.delivery_date,
                deposit=order_data.deposit,
                final_price=order_data.final_price,
                completed=False,
            )
            for item_request in order_data.items:
                order.items.append(
                    self._build_order_item(item_request, inventory[item_request.inventory_item_id].name)
                )
            for fee in order_data.fees:
                order.fees.append(OrderFee(description=fee.description, amount=fee.amount))

            self.db.add(order)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(order)
        logger.info(f"Order {order.id} created for {order.customer_name}")
        return order

    def edit_order(self, order_id: int, order_data: OrderUpdate) -> Order:
        """
        Replace an order's items and details. The order's own current lines
        are excluded from the availability check.
        """
        logger.info(f"Editing order {order_id}")
        requested = requested_quantities(order_data.items)

        try:
            order = self.get_order(order_id)
            previous_customer = order.customer_name
            inventory = self.availability.reserve(
                requested,
                order_data.pick_up_date,
                order_data.delivery_date,
                exclude_order_id=order_id,
            )

            # Replace-all: drop every existing line, then add the new set
            order.items.clear()
            self.db.flush()

            order.customer_name = order_data.customer_name
            order.pick_up_date = order_data.pick_up_date
            order.delivery_date = order_data.delivery_date
            # Fields left out of the request keep their stored values
            if "deposit" in order_data.model_fields_set:
                order.deposit = order_data.deposit
            if "final_price" in order_data.model_fields_set:
                order.final_price = order_data.final_price

            for item_request in order_data.items:
                order.items.append(
                    self._build_order_item(item_request, inventory[item_request.inventory_item_id].name)
                )

            if order_data.fees is not None:
                order.fees.clear()
                for fee in order_data.fees:
                    order.fees.append(OrderFee(description=fee.description, amount=fee.amount))

            if previous_customer != order.customer_name:
                self.db.flush()
                self._cleanup_special_prices(previous_customer)

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(order)
        logger.info(f"Order {order.id} updated")
        return order

    def complete_order(self, order_id: int) -> Order:
        """Archive an order; it stops holding stock. Completing twice fails."""
        try:
            updated = self.db.execute(
                update(Order)
                .where(Order.id == order_id, Order.completed.is_(False))
                .values(completed=True)
                .execution_options(synchronize_session=False)
            ).rowcount

            if updated == 0:
                # Tell a missing order apart from one already completed
                self.get_order(order_id)
                raise OrderAlreadyCompletedError(f"Order {order_id} is already completed")

            order = self.get_order(order_id)
            self._cleanup_special_prices(order.customer_name)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(order)
        logger.info(f"Order {order_id} completed")
        return order

    def delete_order(self, order_id: int) -> None:
        try:
            order = self.get_order(order_id)
            customer_name = order.customer_name
            self.db.delete(order)
            self.db.flush()
            self._cleanup_special_prices(customer_name)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Order {order_id} deleted")

    def _build_order_item(self, item_request: OrderItemCreate, item_name: str) -> OrderItem:
        return OrderItem(
            inventory_item_id=item_request.inventory_item_id,
            item_name=item_name,
            quantity=item_request.quantity,
            unit_price=item_request.unit_price,
            total=item_request.total,
            special_price=item_request.special_price,
        )

    def _cleanup_special_prices(self, customer_name: str) -> None:
        """Special prices only live while the customer has an active order"""
        remaining = (
            self.db.query(func.count(Order.id))
            .filter(Order.customer_name == customer_name, Order.completed.is_(False))
            .scalar()
        )
        if remaining:
            return

        removed = (
            self.db.query(SpecialPrice)
            .filter(SpecialPrice.customer_name == customer_name)
            .delete(synchronize_session=False)
        )
        if removed:
            logger.info(f"Removed {removed} special price(s) for {customer_name}: no active orders left")
