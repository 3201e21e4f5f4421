from typing import List
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload
from src.models.database import InventoryItem, PackageTemplate, PackageTemplateItem
from src.models.schemas import PackageCreate
from src.services.exceptions import DuplicateNameError, NotFoundError
import logging

logger = logging.getLogger(__name__)


class PackageService:
    """Named bundles used to pre-fill new orders. They never hold stock."""

    def __init__(self, db: Session):
        self.db = db

    def list_packages(self) -> List[PackageTemplate]:
        return self.db.query(PackageTemplate).order_by(PackageTemplate.name).all()

    def get_package(self, package_id: int) -> PackageTemplate:
        package = (
            self.db.query(PackageTemplate)
            .options(selectinload(PackageTemplate.items).selectinload(PackageTemplateItem.inventory_item))
            .filter(PackageTemplate.id == package_id)
            .first()
        )
        if not package:
            raise NotFoundError(f"Package {package_id} not found")
        return package

    def create_package(self, package_data: PackageCreate) -> PackageTemplate:
        if self.db.query(PackageTemplate.id).filter(PackageTemplate.name == package_data.name).first():
            raise DuplicateNameError(f"A package named '{package_data.name}' already exists")

        try:
            item_ids = {item.inventory_item_id for item in package_data.items}
            found = {
                item_id
                for (item_id,) in self.db.query(InventoryItem.id).filter(InventoryItem.id.in_(item_ids))
            }
            missing = sorted(item_ids - found)
            if missing:
                raise NotFoundError(f"Inventory item {missing[0]} not found")

            package = PackageTemplate(name=package_data.name)
            for item in package_data.items:
                package.items.append(
                    PackageTemplateItem(inventory_item_id=item.inventory_item_id, quantity=item.quantity)
                )
            self.db.add(package)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateNameError(f"A package named '{package_data.name}' already exists")
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(package)
        logger.info(f"Created package {package.name} with {len(package_data.items)} item(s)")
        return package

    def delete_package(self, package_id: int) -> None:
        try:
            package = self.db.query(PackageTemplate).filter(PackageTemplate.id == package_id).first()
            if not package:
                raise NotFoundError(f"Package {package_id} not found")
            self.db.delete(package)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Deleted package {package_id}")
