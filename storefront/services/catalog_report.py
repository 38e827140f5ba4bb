"""Catalog reporting queries.

The catalog image report lists every categorized product above a price
threshold together with the locations of its images::

    SELECT c.name, p.name, p.price, <concat>(pi.image_url)
    FROM categories c
    JOIN products p ON p.category_id = c.id
    LEFT JOIN product_images pi ON pi.product_id = p.id
    WHERE p.price > :min_price
    GROUP BY c.id, c.name, p.id, p.name, p.price
    ORDER BY c.name, p.name

String aggregation is not portable, so ``<concat>`` is compiled per dialect.
"""
from decimal import Decimal
from typing import Dict, List, Optional

import structlog
from sqlalchemy import Text, func
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.orm import Session
from sqlalchemy.sql.functions import FunctionElement

from storefront.core.config import settings
from storefront.models.category import Category
from storefront.models.order import Order, OrderStatus
from storefront.models.product import Product, ProductImage
from storefront.schemas.report import CatalogImageReport, CatalogImageRow, SalesSummary

logger = structlog.get_logger()

IMAGE_URL_SEPARATOR = ","


class aggregate_image_urls(FunctionElement):
    """Concatenate image URLs of a group, ordered by the second argument where supported.

    Yields NULL for groups whose outer-joined image rows are all NULL.
    """

    type = Text()
    name = "aggregate_image_urls"
    inherit_cache = True


def _url_and_order(element, compiler, **kw):
    url_column, order_column = element.clauses.clauses
    return compiler.process(url_column, **kw), compiler.process(order_column, **kw)


@compiles(aggregate_image_urls)
def _compile_group_concat(element, compiler, **kw):
    # SQLite only accepts ORDER BY inside group_concat from 3.44 on.
    url_sql, _ = _url_and_order(element, compiler, **kw)
    return f"group_concat({url_sql}, '{IMAGE_URL_SEPARATOR}')"


@compiles(aggregate_image_urls, "mysql")
@compiles(aggregate_image_urls, "mariadb")
def _compile_mysql_group_concat(element, compiler, **kw):
    url_sql, order_sql = _url_and_order(element, compiler, **kw)
    return f"GROUP_CONCAT({url_sql} ORDER BY {order_sql} SEPARATOR '{IMAGE_URL_SEPARATOR}')"


@compiles(aggregate_image_urls, "postgresql")
def _compile_string_agg(element, compiler, **kw):
    url_sql, order_sql = _url_and_order(element, compiler, **kw)
    return f"string_agg({url_sql}, '{IMAGE_URL_SEPARATOR}' ORDER BY {order_sql})"


def split_image_urls(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [url for url in value.split(IMAGE_URL_SEPARATOR) if url]


def catalog_image_query(db: Session, min_price: Decimal):
    """Build the catalog image report query without executing it."""
    return (
        db.query(
            Category.name.label("category_name"),
            Product.name.label("product_name"),
            Product.price.label("price"),
            aggregate_image_urls(ProductImage.image_url, ProductImage.id).label("image_urls"),
        )
        .select_from(Category)
        .join(Product, Product.category_id == Category.id)
        .outerjoin(ProductImage, ProductImage.product_id == Product.id)
        .filter(Product.price > min_price)
        .group_by(Category.id, Category.name, Product.id, Product.name, Product.price)
        .order_by(Category.name.asc(), Product.name.asc())
    )


def catalog_image_report(db: Session, min_price: Optional[Decimal] = None) -> CatalogImageReport:
    """
    Run the catalog image report.

    Args:
        db (Session): Database session
        min_price (Decimal): Products must be priced strictly above this value.
            Defaults to ``settings.CATALOG_REPORT_MIN_PRICE``.

    Returns:
        CatalogImageReport: Rows sorted by category name, then product name
    """
    threshold = settings.CATALOG_REPORT_MIN_PRICE if min_price is None else Decimal(min_price)
    if threshold < 0:
        raise ValueError("min_price must not be negative")

    rows = [
        CatalogImageRow(
            category_name=row.category_name,
            product_name=row.product_name,
            price=row.price,
            image_urls=split_image_urls(row.image_urls),
        )
        for row in catalog_image_query(db, threshold).all()
    ]

    logger.info(
        "catalog_report_generated",
        min_price=str(threshold),
        row_count=len(rows),
    )
    return CatalogImageReport(min_price=threshold, row_count=len(rows), rows=rows)


def sales_summary(db: Session) -> SalesSummary:
    """Order counts per status and revenue from completed orders."""
    counts: Dict[str, int] = {status.value: 0 for status in OrderStatus}
    for status, order_count in (
        db.query(Order.status, func.count(Order.id))
        .group_by(Order.status)
        .all()
    ):
        counts[OrderStatus(status).value] = int(order_count)

    revenue = (
        db.query(func.coalesce(func.sum(Order.total_amount), 0))
        .filter(Order.status == OrderStatus.COMPLETED)
        .scalar()
    )

    return SalesSummary(
        total_orders=sum(counts.values()),
        orders_by_status=counts,
        completed_revenue=Decimal(revenue or 0).quantize(Decimal("0.01")),
    )
