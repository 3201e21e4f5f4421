from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime

Base = declarative_base()

class InventoryItem(Base):
    """Rentable item with its physical stock count"""
    __tablename__ = "inventory_items"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, index=True, nullable=False)
    total_quantity = Column(Integer, nullable=False, default=0)
    price_per_item = Column(Float, nullable=False, default=0.0)
    price_paid = Column(Float, nullable=False, default=0.0)
    version = Column(Integer, nullable=False, default=1)  # Bumped to claim the row inside a transaction
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Order lines block deletion; the ORM must not null them out
    order_items = relationship("OrderItem", back_populates="inventory_item", passive_deletes="all")
    package_items = relationship(
        "PackageTemplateItem", back_populates="inventory_item", cascade="all, delete-orphan"
    )

class Order(Base):
    """Customer rental order; active until completed"""
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    customer_name = Column(String, index=True, nullable=False)
    pick_up_date = Column(Date, nullable=False)
    delivery_date = Column(Date, nullable=False)
    deposit = Column(Float)
    final_price = Column(Float)  # Overrides the computed total when set
    completed = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    items = relationship(
        "OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id"
    )
    fees = relationship(
        "OrderFee", back_populates="order", cascade="all, delete-orphan", order_by="OrderFee.id"
    )

class OrderItem(Base):
    """Line of an order. item_name is a snapshot taken when the line is written."""
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    inventory_item_id = Column(
        Integer, ForeignKey("inventory_items.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    item_name = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Float, nullable=False)
    total = Column(Float, nullable=False)
    special_price = Column(Float)

    order = relationship("Order", back_populates="items")
    inventory_item = relationship("InventoryItem", back_populates="order_items")

class OrderFee(Base):
    """Flat addition to an order total"""
    __tablename__ = "order_fees"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    description = Column(String, nullable=False)
    amount = Column(Float, nullable=False)

    order = relationship("Order", back_populates="fees")

class SpecialPrice(Base):
    """Per-customer override of an item's standard unit price"""
    __tablename__ = "special_prices"
    __table_args__ = (UniqueConstraint("customer_name", "item_name", name="uq_special_price_customer_item"),)

    id = Column(Integer, primary_key=True, index=True)
    customer_name = Column(String, nullable=False, index=True)
    item_name = Column(String, nullable=False)
    price = Column(Float, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

class PackageTemplate(Base):
    __tablename__ = "package_templates"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, index=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    items = relationship(
        "PackageTemplateItem",
        back_populates="package_template",
        cascade="all, delete-orphan",
        order_by="PackageTemplateItem.id",
    )

class PackageTemplateItem(Base):
    __tablename__ = "package_template_items"

    id = Column(Integer, primary_key=True, index=True)
    package_template_id = Column(
        Integer, ForeignKey("package_templates.id", ondelete="CASCADE"), nullable=False, index=True
    )
    inventory_item_id = Column(
        Integer, ForeignKey("inventory_items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    quantity = Column(Integer, nullable=False)

    package_template = relationship("PackageTemplate", back_populates="items")
    inventory_item = relationship("InventoryItem", back_populates="package_items")
