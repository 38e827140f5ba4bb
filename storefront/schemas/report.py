from decimal import Decimal
from typing import Dict, List

from pydantic import BaseModel


class CatalogImageRow(BaseModel):
    category_name: str
    product_name: str
    price: Decimal
    image_urls: List[str]


class CatalogImageReport(BaseModel):
    min_price: Decimal
    row_count: int
    rows: List[CatalogImageRow]


class SalesSummary(BaseModel):
    total_orders: int
    orders_by_status: Dict[str, int]
    completed_revenue: Decimal
