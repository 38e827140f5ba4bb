from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from storefront.api.deps import require_admin
from storefront.core.rate_limiter import limiter
from storefront.db.session import get_db
from storefront.models.user import User
from storefront.services.catalog_report import catalog_image_report, sales_summary
from storefront.utils.response import success

router = APIRouter()


@router.get(
    "/catalog-images",
    response_model=dict,
    summary="Catalog image report",
    description="""
Lists categorized products priced above `min_price` with their image locations.

Rows are grouped per category and product and sorted by category name, then
product name. Products without images are included with an empty list.
""",
)
@limiter.limit("60/minute")
def get_catalog_image_report(
    request: Request,
    min_price: Optional[Decimal] = Query(None, ge=0, description="Exclusive lower price bound"),
    db: Session = Depends(get_db),
):
    report = catalog_image_report(db, min_price)
    return success(data=report.model_dump(), message="Catalog image report generated")


@router.get("/sales-summary", response_model=dict)
@limiter.limit("60/minute")
def get_sales_summary(
    request: Request,
    current_admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Admin: order counts per status and completed revenue"""
    return success(data=sales_summary(db).model_dump(), message="Sales summary retrieved")
