# sales_analytics/schemas.py
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")

# Mobile clients read camelCase keys; every field is always present.
class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class BucketItem(CamelModel):
    value: float = 0.0
    label: str

class SalesAnalytics(CamelModel):
    current_period: List[BucketItem] = []
    total_revenue: float = 0.0
    percentage_change: float = 0.0
    is_positive: bool = False

class ProductSales(CamelModel):
    name: Optional[str] = None
    units_sold: int = 0

class GeneralAnalytics(CamelModel):
    top_product: Optional[ProductSales] = None
    low_product: Optional[ProductSales] = None

class SellerRanking(CamelModel):
    granularity: str
    count: int = 0
    products: List[ProductSales] = []

class PaymentMethodTotal(CamelModel):
    method: str
    total_amount: float = 0.0
    transaction_count: int = 0

class PaymentBreakdown(CamelModel):
    days: int
    breakdown: List[PaymentMethodTotal] = []

class Envelope(BaseModel, Generic[T]):
    success: bool = True
    data: T

class ErrorResponse(BaseModel):
    success: bool = False
    error: str
