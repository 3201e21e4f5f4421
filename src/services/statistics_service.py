from collections import Counter, defaultdict
from datetime import date
from typing import Optional
from sqlalchemy.orm import Session, selectinload
from src.models.database import Order, OrderItem
import logging

logger = logging.getLogger(__name__)


def order_total(order: Order) -> float:
    """final_price when set, otherwise item totals plus fees"""
    if order.final_price is not None:
        return order.final_price
    return sum(item.total for item in order.items) + sum(fee.amount for fee in order.fees)


class StatisticsService:
    """Sales figures derived from completed orders"""

    def __init__(self, db: Session):
        self.db = db

    def build(self, today: Optional[date] = None) -> dict:
        today = today or date.today()
        orders = (
            self.db.query(Order)
            .options(
                selectinload(Order.items).selectinload(OrderItem.inventory_item),
                selectinload(Order.fees),
            )
            .filter(Order.completed.is_(True))
            .all()
        )

        kpis = {
            "total_lifetime_sales": 0.0,
            "total_sales_this_month": 0.0,
            "total_sales_this_year": 0.0,
            "average_order_value": 0.0,
        }
        if not orders:
            return {
                "kpis": kpis,
                "sales_by_item": [],
                "monthly_sales": {},
                "top10_by_value": [],
                "top10_by_frequency": [],
            }

        monthly = defaultdict(lambda: [0.0] * 12)
        for order in orders:
            total = order_total(order)
            delivered = order.delivery_date
            kpis["total_lifetime_sales"] += total
            if delivered.year == today.year:
                kpis["total_sales_this_year"] += total
                if delivered.month == today.month:
                    kpis["total_sales_this_month"] += total
            monthly[str(delivered.year)][delivered.month - 1] += total
        kpis["average_order_value"] = kpis["total_lifetime_sales"] / len(orders)

        sales_by_item = self._sales_by_item(orders)

        # How many completed orders contain each item
        frequency = Counter()
        for order in orders:
            frequency.update({item.item_name for item in order.items})

        logger.debug(f"Statistics built from {len(orders)} completed order(s)")
        return {
            "kpis": kpis,
            "sales_by_item": sales_by_item,
            "monthly_sales": {
                year: [{"month": index + 1, "sales": sales} for index, sales in enumerate(months)]
                for year, months in sorted(monthly.items())
            },
            "top10_by_value": sales_by_item[:10],
            "top10_by_frequency": [
                {"name": name, "count": count}
                for name, count in sorted(frequency.items(), key=lambda entry: (-entry[1], entry[0]))[:10]
            ],
        }

    def _sales_by_item(self, orders) -> list:
        """
        Item sales with return on investment. Orders with a negotiated
        final_price have no per-item breakdown and are left out.
        """
        totals = defaultdict(float)
        investment = {}
        for order in orders:
            if order.final_price is not None:
                continue
            for item in order.items:
                totals[item.item_name] += item.total
                if item.item_name not in investment:
                    stock = item.inventory_item
                    investment[item.item_name] = stock.price_paid * stock.total_quantity if stock else 0.0

        rows = []
        for item_name, total_sales in totals.items():
            if total_sales <= 0:
                continue
            invested = investment[item_name]
            roi = round(total_sales / invested * 100, 2) if invested > 0 else 0.0
            rows.append({"item_name": item_name, "total_sales": total_sales, "roi": roi})

        rows.sort(key=lambda row: row["total_sales"], reverse=True)
        return rows
