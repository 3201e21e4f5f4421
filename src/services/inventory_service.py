from typing import Dict, List
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from src.models.database import InventoryItem, Order, OrderItem, SpecialPrice
from src.models.schemas import InventoryItemCreate, InventoryItemUpdate
from src.services.availability import AvailabilityService
from src.services.exceptions import (
    DuplicateNameError,
    NotFoundError,
    ReferentialIntegrityError,
    StockInUseError,
)
import logging

logger = logging.getLogger(__name__)


def stock_view(item: InventoryItem, rented_out: int) -> dict:
    return {
        "id": item.id,
        "name": item.name,
        "total_quantity": item.total_quantity,
        "price_per_item": item.price_per_item,
        "price_paid": item.price_paid,
        "created_at": item.created_at,
        "updated_at": item.updated_at,
        "rented_out": rented_out,
        "in_stock": item.total_quantity - rented_out,
    }


class InventoryService:
    def __init__(self, db: Session):
        self.db = db
        self.availability = AvailabilityService(db)

    def rented_out_by_item(self) -> Dict[int, int]:
        """Units held by active orders per inventory item, ignoring dates"""
        rows = (
            self.db.query(OrderItem.inventory_item_id, func.sum(OrderItem.quantity))
            .join(Order, OrderItem.order_id == Order.id)
            .filter(Order.completed.is_(False), OrderItem.inventory_item_id.isnot(None))
            .group_by(OrderItem.inventory_item_id)
            .all()
        )
        return {item_id: int(quantity) for item_id, quantity in rows}

    def list_items(self) -> List[dict]:
        items = self.db.query(InventoryItem).order_by(InventoryItem.name).all()
        rented = self.rented_out_by_item()
        return [stock_view(item, rented.get(item.id, 0)) for item in items]

    def get_item(self, item_id: int) -> InventoryItem:
        item = self.db.query(InventoryItem).filter(InventoryItem.id == item_id).first()
        if not item:
            raise NotFoundError(f"Inventory item {item_id} not found")
        return item

    def get_item_with_stock(self, item_id: int) -> dict:
        item = self.get_item(item_id)
        return stock_view(item, self.availability.currently_rented(item.id))

    def create_item(self, item_data: InventoryItemCreate) -> dict:
        if self._name_taken(item_data.name):
            raise DuplicateNameError(f"An item named '{item_data.name}' already exists")

        item = InventoryItem(**item_data.model_dump())
        self.db.add(item)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateNameError(f"An item named '{item_data.name}' already exists")

        self.db.refresh(item)
        logger.info(f"Created inventory item {item.name} (stock {item.total_quantity})")
        return stock_view(item, 0)

    def update_item(self, item_id: int, item_data: InventoryItemUpdate) -> dict:
        """
        Update an item. The new total may not drop below the units currently
        held by active orders, regardless of their dates.
        """
        try:
            item = self.availability.claim_items([item_id])[item_id]

            currently_rented = self.availability.currently_rented(item_id)
            if item_data.total_quantity < currently_rented:
                raise StockInUseError(
                    f"Cannot set total quantity to {item_data.total_quantity}. "
                    f"There are currently {currently_rented} items rented out."
                )

            if item_data.name != item.name:
                if self._name_taken(item_data.name, exclude_id=item_id):
                    raise DuplicateNameError(f"An item named '{item_data.name}' already exists")
                # Special prices are keyed by item name; order snapshots are left alone
                self.db.query(SpecialPrice).filter(SpecialPrice.item_name == item.name).update(
                    {SpecialPrice.item_name: item_data.name}, synchronize_session=False
                )

            for field, value in item_data.model_dump().items():
                setattr(item, field, value)

            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateNameError(f"An item named '{item_data.name}' already exists")
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(item)
        logger.info(f"Updated inventory item {item.id} ({item.name})")
        return stock_view(item, currently_rented)

    def delete_item(self, item_id: int) -> None:
        """Delete an item that no order line, active or completed, refers to"""
        try:
            # Claimed so no order can reference the item between the count and the delete
            item = self.availability.claim_items([item_id])[item_id]
            item_name = item.name
            references = self.order_line_count(item_id)
            if references:
                raise ReferentialIntegrityError(
                    f"Cannot delete '{item_name}': it is part of {references} order line(s). "
                    "To preserve history, it cannot be removed."
                )
            self.db.delete(item)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ReferentialIntegrityError(
                f"Cannot delete '{item_name}': it is still referenced by an order line."
            )
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Deleted inventory item {item_id}")

    def order_line_count(self, item_id: int) -> int:
        """Order lines, active or completed, that refer to the item"""
        return (
            self.db.query(func.count(OrderItem.id))
            .filter(OrderItem.inventory_item_id == item_id)
            .scalar()
        )

    def _name_taken(self, name: str, exclude_id: int = None) -> bool:
        query = self.db.query(InventoryItem.id).filter(InventoryItem.name == name)
        if exclude_id is not None:
            query = query.filter(InventoryItem.id != exclude_id)
        return query.first() is not None
