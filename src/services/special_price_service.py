from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from src.models.database import InventoryItem, Order, OrderItem, SpecialPrice
from src.models.schemas import SpecialPriceCreate
from src.services.exceptions import ConflictError, NotFoundError
import logging

logger = logging.getLogger(__name__)


class SpecialPriceService:
    """
    Per-customer prices. Every change is pushed to the customer's active
    order lines for that item in the same transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    def list_special_prices(self) -> List[SpecialPrice]:
        return (
            self.db.query(SpecialPrice)
            .order_by(SpecialPrice.customer_name, SpecialPrice.item_name)
            .all()
        )

    def set_special_price(self, price_data: SpecialPriceCreate) -> SpecialPrice:
        """Create or update a special price and reprice active order lines"""
        customer_name = price_data.customer_name
        item_name = price_data.item_name
        price = price_data.price

        try:
            inventory_item = self._find_item(item_name)
            if not inventory_item:
                raise NotFoundError(f"Inventory item '{item_name}' not found")

            special = (
                self.db.query(SpecialPrice)
                .filter(SpecialPrice.customer_name == customer_name, SpecialPrice.item_name == item_name)
                .first()
            )
            if special:
                special.price = price
            else:
                special = SpecialPrice(customer_name=customer_name, item_name=item_name, price=price)
                self.db.add(special)

            repriced = 0
            for order_item in self._active_order_items(customer_name, inventory_item.id):
                order_item.unit_price = price
                order_item.total = price * order_item.quantity
                order_item.special_price = price
                repriced += 1

            self.db.commit()
        except IntegrityError:
            # A concurrent request inserted the same (customer, item) pair
            self.db.rollback()
            raise ConflictError(f"Special price for {customer_name} / {item_name} was changed concurrently")
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(special)
        logger.info(
            f"Special price {price} set for {customer_name} / {item_name}; "
            f"{repriced} active order line(s) repriced"
        )
        return special

    def delete_special_price(self, special_price_id: int) -> None:
        """Delete a special price and revert active order lines to the standard price"""
        try:
            special = self.db.query(SpecialPrice).filter(SpecialPrice.id == special_price_id).first()
            if not special:
                raise NotFoundError(f"Special price {special_price_id} not found")

            reverted = 0
            inventory_item = self._find_item(special.item_name)
            # Without the inventory item there is no standard price to revert to
            if inventory_item:
                standard_price = inventory_item.price_per_item
                for order_item in self._active_order_items(special.customer_name, inventory_item.id):
                    order_item.unit_price = standard_price
                    order_item.total = standard_price * order_item.quantity
                    order_item.special_price = None
                    reverted += 1

            self.db.delete(special)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Special price {special_price_id} deleted; {reverted} active order line(s) reverted")

    def _find_item(self, item_name: str) -> Optional[InventoryItem]:
        return self.db.query(InventoryItem).filter(InventoryItem.name == item_name).first()

    def _active_order_items(self, customer_name: str, inventory_item_id: int) -> List[OrderItem]:
        return (
            self.db.query(OrderItem)
            .join(Order, OrderItem.order_id == Order.id)
            .filter(
                OrderItem.inventory_item_id == inventory_item_id,
                Order.customer_name == customer_name,
                Order.completed.is_(False),
            )
            .all()
        )
