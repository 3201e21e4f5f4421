from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from src.core.database import get_db
from src.models.schemas import Statistics
from src.services.statistics_service import StatisticsService

router = APIRouter()

@router.get("/", response_model=Statistics)
async def get_statistics(db: Session = Depends(get_db)):
    """Sales figures over completed orders"""
    return StatisticsService(db).build()
