import pytest
from datetime import date
from src.models.database import OrderItem, SpecialPrice
from src.models.schemas import SpecialPriceCreate
from src.services.exceptions import NotFoundError
from src.services.order_service import OrderService
from src.services.special_price_service import SpecialPriceService

JAN_1 = date(2024, 1, 1)
JAN_5 = date(2024, 1, 5)
JAN_10 = date(2024, 1, 10)


def lines_for(test_db, order):
    test_db.expire_all()
    return test_db.query(OrderItem).filter(OrderItem.order_id == order.id).order_by(OrderItem.id).all()


class TestSetSpecialPrice:
    def test_propagates_to_active_orders_only(self, test_db, make_item, place_order):
        chair = make_item(name="Chair", total_quantity=20, price_per_item=5.0)
        table = make_item(name="Table", total_quantity=20, price_per_item=12.0)
        active = place_order("Alice", JAN_1, JAN_5, [(chair, 4), (table, 1)])
        archived = place_order("Alice", JAN_5, JAN_10, [(chair, 2)])
        other_customer = place_order("Bob", JAN_1, JAN_5, [(chair, 3)])
        OrderService(test_db).complete_order(archived.id)

        special = SpecialPriceService(test_db).set_special_price(
            SpecialPriceCreate(customer_name="Alice", item_name="Chair", price=3.5)
        )

        assert special.id is not None
        chair_line, table_line = lines_for(test_db, active)
        assert (chair_line.unit_price, chair_line.total, chair_line.special_price) == (3.5, 14.0, 3.5)
        assert (table_line.unit_price, table_line.total, table_line.special_price) == (12.0, 12.0, None)
        assert lines_for(test_db, archived)[0].unit_price == 5.0
        assert lines_for(test_db, other_customer)[0].unit_price == 5.0

    def test_upsert_updates_existing_price(self, test_db, make_item, place_order):
        chair = make_item(name="Chair", price_per_item=5.0)
        order = place_order("Alice", JAN_1, JAN_5, [(chair, 3)])
        service = SpecialPriceService(test_db)

        first = service.set_special_price(SpecialPriceCreate(customer_name="Alice", item_name="Chair", price=4.0))
        second = service.set_special_price(SpecialPriceCreate(customer_name="Alice", item_name="Chair", price=2.0))

        assert first.id == second.id
        assert test_db.query(SpecialPrice).count() == 1
        line = lines_for(test_db, order)[0]
        assert line.total == 6.0

    def test_unknown_item(self, test_db):
        with pytest.raises(NotFoundError, match="Ghost"):
            SpecialPriceService(test_db).set_special_price(
                SpecialPriceCreate(customer_name="Alice", item_name="Ghost", price=1.0)
            )

        assert test_db.query(SpecialPrice).count() == 0


class TestDeleteSpecialPrice:
    def test_reverts_to_standard_price(self, test_db, make_item, place_order):
        chair = make_item(name="Chair", price_per_item=5.0)
        order = place_order("Alice", JAN_1, JAN_5, [(chair, 4)])
        service = SpecialPriceService(test_db)
        special = service.set_special_price(
            SpecialPriceCreate(customer_name="Alice", item_name="Chair", price=3.0)
        )

        service.delete_special_price(special.id)

        line = lines_for(test_db, order)[0]
        assert (line.unit_price, line.total, line.special_price) == (5.0, 20.0, None)
        assert test_db.query(SpecialPrice).count() == 0

    def test_item_gone_still_deletes(self, test_db):
        special = SpecialPrice(customer_name="Alice", item_name="Retired Item", price=1.0)
        test_db.add(special)
        test_db.commit()

        SpecialPriceService(test_db).delete_special_price(special.id)

        assert test_db.query(SpecialPrice).count() == 0

    def test_unknown_special_price(self, test_db):
        with pytest.raises(NotFoundError):
            SpecialPriceService(test_db).delete_special_price(99999)
