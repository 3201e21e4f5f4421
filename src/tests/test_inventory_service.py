import pytest
from datetime import date
from sqlalchemy.exc import IntegrityError
from src.models.database import InventoryItem, OrderItem, PackageTemplate, PackageTemplateItem, SpecialPrice
from src.models.schemas import InventoryItemCreate, InventoryItemUpdate
from src.services.exceptions import (
    DuplicateNameError,
    NotFoundError,
    ReferentialIntegrityError,
    StockInUseError,
)
from src.services.inventory_service import InventoryService
from src.services.order_service import OrderService

JAN_1 = date(2024, 1, 1)
JAN_5 = date(2024, 1, 5)


def item_update(name="Folding Chair", total_quantity=10, price_per_item=5.0, price_paid=20.0):
    return InventoryItemUpdate(
        name=name,
        total_quantity=total_quantity,
        price_per_item=price_per_item,
        price_paid=price_paid,
    )


class TestInventoryListing:
    def test_list_reports_rented_out_and_in_stock(self, test_db, make_item, place_order):
        chair = make_item(name="Chair", total_quantity=10)
        arch = make_item(name="Arch", total_quantity=2)
        place_order("Alice", JAN_1, JAN_5, [(chair, 3)])
        place_order("Bob", date(2025, 1, 1), date(2025, 1, 2), [(chair, 2)])
        finished = place_order("Carol", JAN_1, JAN_5, [(arch, 1)])
        OrderService(test_db).complete_order(finished.id)

        listing = InventoryService(test_db).list_items()

        assert [row["name"] for row in listing] == ["Arch", "Chair"]
        arch_row, chair_row = listing
        assert (arch_row["rented_out"], arch_row["in_stock"]) == (0, 2)
        assert (chair_row["rented_out"], chair_row["in_stock"]) == (5, 5)


class TestCreateInventoryItem:
    def test_create(self, test_db):
        created = InventoryService(test_db).create_item(
            InventoryItemCreate(name="  Tent  ", total_quantity=4, price_per_item=50.0, price_paid=300.0)
        )

        assert created["name"] == "Tent"
        assert created["rented_out"] == 0
        assert created["in_stock"] == 4

    def test_duplicate_name(self, test_db, make_item):
        make_item(name="Tent")

        with pytest.raises(DuplicateNameError):
            InventoryService(test_db).create_item(
                InventoryItemCreate(name="Tent", total_quantity=1, price_per_item=1.0, price_paid=1.0)
            )


class TestUpdateInventoryItem:
    def test_update_fields(self, test_db, make_item):
        item = make_item(name="Chair", total_quantity=10)

        updated = InventoryService(test_db).update_item(
            item.id, item_update(name="Chair", total_quantity=12, price_per_item=6.0, price_paid=25.0)
        )

        assert updated["total_quantity"] == 12
        assert updated["price_per_item"] == 6.0
        assert updated["in_stock"] == 12

    def test_cannot_drop_below_rented_regardless_of_dates(self, test_db, make_item, place_order):
        item = make_item(name="Chair", total_quantity=10)
        place_order("Alice", JAN_1, JAN_5, [(item, 4)])
        place_order("Bob", date(2030, 1, 1), date(2030, 1, 5), [(item, 3)])

        with pytest.raises(StockInUseError, match="currently 7 items rented out"):
            InventoryService(test_db).update_item(item.id, item_update(name="Chair", total_quantity=6))

        test_db.expire_all()
        assert test_db.query(InventoryItem).filter(InventoryItem.id == item.id).one().total_quantity == 10

        updated = InventoryService(test_db).update_item(item.id, item_update(name="Chair", total_quantity=7))
        assert updated["in_stock"] == 0

    def test_rename_to_existing_name(self, test_db, make_item):
        make_item(name="Chair")
        table = make_item(name="Table")

        with pytest.raises(DuplicateNameError):
            InventoryService(test_db).update_item(table.id, item_update(name="Chair"))

    def test_rename_carries_special_prices(self, test_db, make_item, place_order):
        item = make_item(name="Chair")
        order = place_order("Alice", JAN_1, JAN_5, [(item, 1)])
        test_db.add(SpecialPrice(customer_name="Alice", item_name="Chair", price=2.0))
        test_db.commit()

        InventoryService(test_db).update_item(item.id, item_update(name="Padded Chair"))

        assert test_db.query(SpecialPrice).one().item_name == "Padded Chair"
        test_db.refresh(order)
        assert order.items[0].item_name == "Chair"

    def test_update_unknown_item(self, test_db):
        with pytest.raises(NotFoundError):
            InventoryService(test_db).update_item(99999, item_update())


class TestDeleteInventoryItem:
    def test_delete_unreferenced_item_removes_package_lines(self, test_db, make_item):
        keep = make_item(name="Chair")
        drop = make_item(name="Table")
        package = PackageTemplate(name="Party")
        package.items.append(PackageTemplateItem(inventory_item_id=keep.id, quantity=4))
        package.items.append(PackageTemplateItem(inventory_item_id=drop.id, quantity=1))
        test_db.add(package)
        test_db.commit()

        InventoryService(test_db).delete_item(drop.id)

        assert test_db.query(InventoryItem).count() == 1
        assert [line.inventory_item_id for line in test_db.query(PackageTemplateItem).all()] == [keep.id]

    def test_referenced_item_cannot_be_deleted(self, test_db, make_item, place_order):
        item = make_item(name="Chair")
        order = place_order("Alice", JAN_1, JAN_5, [(item, 1)])
        OrderService(test_db).complete_order(order.id)

        with pytest.raises(ReferentialIntegrityError, match="Chair"):
            InventoryService(test_db).delete_item(item.id)

        assert test_db.query(InventoryItem).count() == 1

    def test_stale_reference_count_still_blocked_by_foreign_key(self, test_db, make_item, place_order, monkeypatch):
        item = make_item(name="Chair")
        item_id = item.id
        place_order("Alice", JAN_1, JAN_5, [(item, 1)])
        # An order committed after the reference count was taken
        monkeypatch.setattr(InventoryService, "order_line_count", lambda self, _: 0)

        with pytest.raises(ReferentialIntegrityError, match="Chair"):
            InventoryService(test_db).delete_item(item_id)

        test_db.expire_all()
        assert test_db.query(InventoryItem).count() == 1
        assert test_db.query(OrderItem).one().inventory_item_id == item_id

    def test_orm_delete_does_not_unlink_order_lines(self, test_db, make_item, place_order):
        item = make_item(name="Chair")
        item_id = item.id
        place_order("Alice", JAN_1, JAN_5, [(item, 1)])
        assert len(item.order_items) == 1

        test_db.delete(item)
        with pytest.raises(IntegrityError):
            test_db.commit()
        test_db.rollback()

        assert test_db.query(OrderItem).one().inventory_item_id == item_id

    def test_delete_unknown_item(self, test_db):
        with pytest.raises(NotFoundError):
            InventoryService(test_db).delete_item(99999)
