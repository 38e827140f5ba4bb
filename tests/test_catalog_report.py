from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.db.init_db import load_sample_data
from storefront.db.sample_data import EXPECTED_CATALOG_REPORT
from storefront.models.product import Product, ProductImage
from storefront.services.catalog_report import (
    catalog_image_query,
    catalog_image_report,
    split_image_urls,
)


@pytest.fixture()
def sample_db(db_session: Session) -> Session:
    load_sample_data(db_session)
    db_session.commit()
    return db_session


def _as_tuples(report):
    # SQLite concatenates without a guaranteed order
    return [
        (row.category_name, row.product_name, row.price, sorted(row.image_urls))
        for row in report.rows
    ]


def test_report_on_sample_data(sample_db: Session):
    report = catalog_image_report(sample_db)

    assert report.min_price == Decimal("30.00")
    assert report.row_count == 4
    assert _as_tuples(report) == EXPECTED_CATALOG_REPORT


def test_threshold_is_exclusive(sample_db: Session):
    report = catalog_image_report(sample_db, Decimal("800.00"))

    assert [row.product_name for row in report.rows] == ["Laptop"]


def test_zero_threshold_includes_every_categorized_product(sample_db: Session):
    report = catalog_image_report(sample_db, Decimal("0"))

    assert [(row.category_name, row.product_name) for row in report.rows] == [
        ("Books", "Novel"),
        ("Clothing", "Jeans"),
        ("Clothing", "T-Shirt"),
        ("Electronics", "Headphones"),
        ("Electronics", "Laptop"),
        ("Electronics", "Smartphone"),
    ]
    novel = report.rows[0]
    assert novel.image_urls == []


def test_uncategorized_products_are_left_out(sample_db: Session):
    loose = Product(name="Loose Item", price=Decimal("999.00"), stock_quantity=1)
    loose.images.append(ProductImage(image_url="loose.jpg"))
    sample_db.add(loose)
    sample_db.commit()

    report = catalog_image_report(sample_db)

    assert "Loose Item" not in [row.product_name for row in report.rows]
    assert report.row_count == 4


def test_threshold_above_every_price_returns_no_rows(sample_db: Session):
    report = catalog_image_report(sample_db, Decimal("5000"))

    assert report.rows == []
    assert report.row_count == 0


def test_negative_threshold_is_rejected(sample_db: Session):
    with pytest.raises(ValueError):
        catalog_image_report(sample_db, Decimal("-1"))


def test_default_threshold_comes_from_settings(sample_db: Session, monkeypatch):
    monkeypatch.setattr(settings, "CATALOG_REPORT_MIN_PRICE", Decimal("1000.00"))

    report = catalog_image_report(sample_db)

    assert report.min_price == Decimal("1000.00")
    assert [row.product_name for row in report.rows] == ["Laptop"]


def test_loading_sample_data_twice_adds_nothing(sample_db: Session):
    load_sample_data(sample_db)
    sample_db.commit()

    assert sample_db.query(Product).count() == 6
    assert sample_db.query(ProductImage).count() == 5
    assert _as_tuples(catalog_image_report(sample_db)) == EXPECTED_CATALOG_REPORT


@pytest.mark.parametrize(
    "dialect, expected",
    [
        (sqlite.dialect(), "group_concat(product_images.image_url, ',')"),
        (postgresql.dialect(), "string_agg(product_images.image_url, ',' ORDER BY product_images.id)"),
        (mysql.dialect(), "GROUP_CONCAT(product_images.image_url ORDER BY product_images.id SEPARATOR ',')"),
    ],
)
def test_image_aggregation_per_dialect(db_session: Session, dialect, expected):
    statement = catalog_image_query(db_session, Decimal("30.00")).statement
    sql = str(statement.compile(dialect=dialect))

    assert expected in sql
    assert "LEFT OUTER JOIN product_images" in sql
    assert "ORDER BY categories.name ASC, products.name ASC" in sql


def test_split_image_urls():
    assert split_image_urls(None) == []
    assert split_image_urls("") == []
    assert split_image_urls("a.jpg,b.jpg") == ["a.jpg", "b.jpg"]


def test_report_endpoint(client: TestClient, sample_db: Session):
    response = client.get("/api/v1/reports/catalog-images")

    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    data = payload["data"]
    assert data["row_count"] == 4
    assert [(row["category_name"], row["product_name"]) for row in data["rows"]] == [
        ("Clothing", "Jeans"),
        ("Electronics", "Headphones"),
        ("Electronics", "Laptop"),
        ("Electronics", "Smartphone"),
    ]
    assert data["rows"][0]["price"] == 50.0
    assert data["rows"][1]["image_urls"] == []


def test_report_endpoint_accepts_threshold(client: TestClient, sample_db: Session):
    response = client.get("/api/v1/reports/catalog-images", params={"min_price": "150"})

    assert response.status_code == 200
    names = [row["product_name"] for row in response.json()["data"]["rows"]]
    assert names == ["Laptop", "Smartphone"]


def test_report_endpoint_rejects_negative_threshold(client: TestClient):
    response = client.get("/api/v1/reports/catalog-images", params={"min_price": "-5"})

    assert response.status_code == 422
    assert response.json()["success"] is False


def test_sales_summary_requires_admin(client: TestClient, customer_headers: dict):
    assert client.get("/api/v1/reports/sales-summary").status_code == 401

    response = client.get("/api/v1/reports/sales-summary", headers=customer_headers)
    assert response.status_code == 403


def test_sales_summary(client: TestClient, sample_db: Session, admin_headers: dict):
    response = client.get("/api/v1/reports/sales-summary", headers=admin_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["total_orders"] == 3
    assert data["orders_by_status"] == {"pending": 1, "completed": 1, "canceled": 1}
    assert data["completed_revenue"] == 1300.0
