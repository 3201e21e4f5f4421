from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session
from typing import List
from src.core.database import get_db
from src.models.schemas import Package, PackageCreate, PackageDetail
from src.services.exceptions import RentalError
from src.services.package_service import PackageService

router = APIRouter()

@router.get("/", response_model=List[Package])
async def get_packages(db: Session = Depends(get_db)):
    return PackageService(db).list_packages()

@router.post("/", response_model=PackageDetail, status_code=status.HTTP_201_CREATED)
async def create_package(package_data: PackageCreate, db: Session = Depends(get_db)):
    try:
        return PackageService(db).create_package(package_data)
    except RentalError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())

@router.get("/{package_id}", response_model=PackageDetail)
async def get_package(package_id: int, db: Session = Depends(get_db)):
    """Get a package with its items, ready to pre-fill an order"""
    try:
        return PackageService(db).get_package(package_id)
    except RentalError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())

@router.delete("/{package_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_package(package_id: int, db: Session = Depends(get_db)):
    try:
        PackageService(db).delete_package(package_id)
    except RentalError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
    return Response(status_code=status.HTTP_204_NO_CONTENT)
