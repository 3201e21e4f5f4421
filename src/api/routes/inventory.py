from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session
from typing import List
from src.core.database import get_db
from src.models.schemas import (
    AvailabilityCheck,
    AvailabilityResult,
    InventoryItemCreate,
    InventoryItemUpdate,
    InventoryItemWithStock,
)
from src.services.availability import AvailabilityService
from src.services.exceptions import RentalError
from src.services.inventory_service import InventoryService
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/", response_model=List[InventoryItemWithStock])
async def get_inventory_items(db: Session = Depends(get_db)):
    """Get all inventory items with their rented-out and in-stock counts"""
    return InventoryService(db).list_items()

@router.post("/", response_model=InventoryItemWithStock, status_code=status.HTTP_201_CREATED)
async def create_inventory_item(item_data: InventoryItemCreate, db: Session = Depends(get_db)):
    """Create a new inventory item"""
    try:
        return InventoryService(db).create_item(item_data)
    except RentalError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())

@router.post("/availability", response_model=AvailabilityResult)
async def check_availability(check: AvailabilityCheck, db: Session = Depends(get_db)):
    """How many units are committed to other active orders for the dates"""
    try:
        return AvailabilityService(db).check_availability(
            check.inventory_item_id,
            check.pick_up_date,
            check.delivery_date,
            exclude_order_id=check.editing_order_id,
        )
    except RentalError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())

@router.get("/{item_id}", response_model=InventoryItemWithStock)
async def get_inventory_item(item_id: int, db: Session = Depends(get_db)):
    """Get a specific inventory item"""
    try:
        return InventoryService(db).get_item_with_stock(item_id)
    except RentalError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())

@router.patch("/{item_id}", response_model=InventoryItemWithStock)
async def update_inventory_item(
    item_id: int,
    item_data: InventoryItemUpdate,
    db: Session = Depends(get_db)
):
    """Update an inventory item; stock cannot drop below what is rented out"""
    try:
        return InventoryService(db).update_item(item_id, item_data)
    except RentalError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
    except Exception:
        logger.exception(f"Failed to update inventory item {item_id}")
        raise HTTPException(status_code=500, detail="Internal server error")

@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_inventory_item(item_id: int, db: Session = Depends(get_db)):
    """Delete an inventory item that no order refers to"""
    try:
        InventoryService(db).delete_item(item_id)
    except RentalError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
    return Response(status_code=status.HTTP_204_NO_CONTENT)
