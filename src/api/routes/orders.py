from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session
from typing import List
from src.core.database import get_db
from src.models.schemas import OrderCreate, OrderUpdate, Order
from src.services.exceptions import RentalError
from src.services.order_service import OrderService
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/", response_model=Order, status_code=status.HTTP_201_CREATED)
async def create_order(order_data: OrderCreate, db: Session = Depends(get_db)):
    """Create a new order; rejected if any item is over-booked for the dates"""
    try:
        return OrderService(db).create_order(order_data)
    except RentalError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
    except Exception:
        logger.exception("Order creation failed")
        raise HTTPException(status_code=500, detail="Internal server error")

@router.get("/", response_model=List[Order])
async def get_orders(db: Session = Depends(get_db)):
    """Get all active orders, newest first"""
    return OrderService(db).list_active_orders()

@router.get("/completed", response_model=List[Order])
async def get_completed_orders(db: Session = Depends(get_db)):
    """Get all completed orders, latest pick-up first"""
    return OrderService(db).list_completed_orders()

@router.get("/{order_id}", response_model=Order)
async def get_order(order_id: int, db: Session = Depends(get_db)):
    """Get a specific order"""
    try:
        return OrderService(db).get_order(order_id)
    except RentalError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())

@router.put("/{order_id}", response_model=Order)
async def edit_order(order_id: int, order_data: OrderUpdate, db: Session = Depends(get_db)):
    """Replace an order's items and details"""
    try:
        return OrderService(db).edit_order(order_id, order_data)
    except RentalError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
    except Exception:
        logger.exception(f"Editing order {order_id} failed")
        raise HTTPException(status_code=500, detail="Internal server error")

@router.patch("/{order_id}/complete", response_model=Order)
async def complete_order(order_id: int, db: Session = Depends(get_db)):
    """Mark an order as completed"""
    try:
        return OrderService(db).complete_order(order_id)
    except RentalError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
    except Exception:
        logger.exception(f"Completing order {order_id} failed")
        raise HTTPException(status_code=500, detail="Internal server error")

@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_order(order_id: int, db: Session = Depends(get_db)):
    """Delete an order and its items and fees"""
    try:
        OrderService(db).delete_order(order_id)
    except RentalError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
    except Exception:
        logger.exception(f"Deleting order {order_id} failed")
        raise HTTPException(status_code=500, detail="Internal server error")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
