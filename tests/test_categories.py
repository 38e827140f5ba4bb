from decimal import Decimal

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from storefront.models.category import Category
from storefront.models.product import Product


def _create_category(db: Session, name: str) -> Category:
    category = Category(name=name, description=f"{name} goods")
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


def test_list_categories_is_public_and_sorted(client: TestClient, db_session: Session):
    toys = _create_category(db_session, "Toys")
    _create_category(db_session, "Audio")
    db_session.add(Product(name="Yo-yo", price=Decimal("4.00"), stock_quantity=3, category_id=toys.id))
    db_session.commit()

    response = client.get("/api/v1/categories")

    assert response.status_code == 200
    data = response.json()["data"]
    assert [entry["name"] for entry in data] == ["Audio", "Toys"]
    assert [entry["product_count"] for entry in data] == [0, 1]


def test_get_category_not_found(client: TestClient):
    response = client.get("/api/v1/categories/404")

    assert response.status_code == 404
    assert response.json()["message"] == "Category not found"


def test_create_category_requires_admin(client: TestClient, customer_headers: dict):
    payload = {"name": "Garden"}

    assert client.post("/api/v1/categories", json=payload).status_code == 401
    response = client.post("/api/v1/categories", json=payload, headers=customer_headers)
    assert response.status_code == 403


def test_create_category(client: TestClient, admin_headers: dict):
    response = client.post(
        "/api/v1/categories",
        json={"name": "  Garden <b>Tools</b> ", "description": "Outdoor"},
        headers=admin_headers,
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["name"] == "Garden Tools"
    assert data["description"] == "Outdoor"


def test_create_category_duplicate_name(client: TestClient, db_session: Session, admin_headers: dict):
    _create_category(db_session, "Kitchen")

    response = client.post("/api/v1/categories", json={"name": "kitchen"}, headers=admin_headers)

    assert response.status_code == 409
    assert response.json()["message"] == "Category already exists"


def test_update_category(client: TestClient, db_session: Session, admin_headers: dict):
    category = _create_category(db_session, "Sport")

    response = client.put(
        f"/api/v1/categories/{category.id}",
        json={"name": "Sports"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["data"]["name"] == "Sports"
    assert response.json()["data"]["description"] == "Sport goods"


def test_delete_category_detaches_products(client: TestClient, db_session: Session, admin_headers: dict):
    category = _create_category(db_session, "Outlet")
    product = Product(name="Old Stock", price=Decimal("9.99"), stock_quantity=2, category_id=category.id)
    db_session.add(product)
    db_session.commit()
    product_id = product.id

    response = client.delete(f"/api/v1/categories/{category.id}", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["data"]["detached_products"] == 1
    remaining = db_session.query(Product).filter(Product.id == product_id).one()
    assert remaining.category_id is None


def test_category_name_length_checked_after_sanitizing(client: TestClient, admin_headers: dict):
    response = client.post("/api/v1/categories", json={"name": "<" * 100}, headers=admin_headers)

    assert response.status_code == 422
