from pydantic import BaseModel, Field, field_validator
from typing import Dict, List, Optional
from datetime import date, datetime

def _strip_required(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value

class InventoryItemBase(BaseModel):
    name: str
    total_quantity: int = Field(ge=0)
    price_per_item: float = Field(ge=0)
    price_paid: float = Field(ge=0)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        return _strip_required(value)

class InventoryItemCreate(InventoryItemBase):
    pass

class InventoryItemUpdate(InventoryItemBase):
    pass

class InventoryItem(InventoryItemBase):
    id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class InventoryItemWithStock(InventoryItem):
    rented_out: int
    in_stock: int

class AvailabilityCheck(BaseModel):
    inventory_item_id: int
    pick_up_date: date
    delivery_date: date
    editing_order_id: Optional[int] = None

class AvailabilityResult(BaseModel):
    inventory_item_id: int
    rented_out: int
    available: int

class OrderItemCreate(BaseModel):
    inventory_item_id: int
    quantity: int = Field(gt=0)
    unit_price: float = Field(ge=0)
    total: float = Field(ge=0)
    special_price: Optional[float] = Field(default=None, ge=0)

class OrderFeeCreate(BaseModel):
    description: str
    amount: float = Field(ge=0)

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, value: str) -> str:
        return _strip_required(value)

class OrderCreate(BaseModel):
    customer_name: str
    pick_up_date: date
    delivery_date: date
    items: List[OrderItemCreate] = Field(min_length=1)
    fees: List[OrderFeeCreate] = []
    deposit: Optional[float] = Field(default=None, ge=0)
    final_price: Optional[float] = Field(default=None, ge=0)

    @field_validator("customer_name")
    @classmethod
    def customer_name_not_blank(cls, value: str) -> str:
        return _strip_required(value)

class OrderUpdate(OrderCreate):
    # None keeps the existing fees
    fees: Optional[List[OrderFeeCreate]] = None

class OrderItem(BaseModel):
    id: int
    inventory_item_id: Optional[int] = None
    item_name: str
    quantity: int
    unit_price: float
    total: float
    special_price: Optional[float] = None

    class Config:
        from_attributes = True

class OrderFee(BaseModel):
    id: int
    description: str
    amount: float

    class Config:
        from_attributes = True

class Order(BaseModel):
    id: int
    customer_name: str
    pick_up_date: date
    delivery_date: date
    deposit: Optional[float] = None
    final_price: Optional[float] = None
    completed: bool
    created_at: datetime
    updated_at: datetime
    items: List[OrderItem] = []
    fees: List[OrderFee] = []

    class Config:
        from_attributes = True

class SpecialPriceCreate(BaseModel):
    customer_name: str
    item_name: str
    price: float = Field(ge=0)

    @field_validator("customer_name", "item_name")
    @classmethod
    def names_not_blank(cls, value: str) -> str:
        return _strip_required(value)

class SpecialPrice(BaseModel):
    id: int
    customer_name: str
    item_name: str
    price: float

    class Config:
        from_attributes = True

class PackageItemCreate(BaseModel):
    inventory_item_id: int
    quantity: int = Field(gt=0)

class PackageCreate(BaseModel):
    name: str
    items: List[PackageItemCreate] = Field(min_length=1)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        return _strip_required(value)

class PackageItem(BaseModel):
    id: int
    inventory_item_id: int
    quantity: int
    inventory_item: Optional[InventoryItem] = None

    class Config:
        from_attributes = True

class Package(BaseModel):
    id: int
    name: str
    created_at: datetime

    class Config:
        from_attributes = True

class PackageDetail(Package):
    items: List[PackageItem] = []

class SalesKpis(BaseModel):
    total_lifetime_sales: float = 0.0
    total_sales_this_month: float = 0.0
    total_sales_this_year: float = 0.0
    average_order_value: float = 0.0

class ItemSales(BaseModel):
    item_name: str
    total_sales: float
    roi: float

class MonthlySales(BaseModel):
    month: int
    sales: float

class ItemFrequency(BaseModel):
    name: str
    count: int

class Statistics(BaseModel):
    kpis: SalesKpis
    sales_by_item: List[ItemSales] = []
    monthly_sales: Dict[str, List[MonthlySales]] = {}
    top10_by_value: List[ItemSales] = []
    top10_by_frequency: List[ItemFrequency] = []
