from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session
from typing import List
from src.core.database import get_db
from src.models.schemas import SpecialPrice, SpecialPriceCreate
from src.services.exceptions import RentalError
from src.services.special_price_service import SpecialPriceService
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/", response_model=List[SpecialPrice])
async def get_special_prices(db: Session = Depends(get_db)):
    return SpecialPriceService(db).list_special_prices()

@router.post("/", response_model=SpecialPrice, status_code=status.HTTP_201_CREATED)
async def set_special_price(price_data: SpecialPriceCreate, db: Session = Depends(get_db)):
    """Add or update a special price and reprice the customer's active orders"""
    try:
        return SpecialPriceService(db).set_special_price(price_data)
    except RentalError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
    except Exception:
        logger.exception("Failed to save special price")
        raise HTTPException(status_code=500, detail="Internal server error")

@router.delete("/{special_price_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_special_price(special_price_id: int, db: Session = Depends(get_db)):
    """Delete a special price and revert active orders to the standard price"""
    try:
        SpecialPriceService(db).delete_special_price(special_price_id)
    except RentalError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
    except Exception:
        logger.exception(f"Failed to delete special price {special_price_id}")
        raise HTTPException(status_code=500, detail="Internal server error")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
