from decimal import Decimal

import pytest
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError, StatementError
from sqlalchemy.orm import Session

from storefront.core.security import hash_password
from storefront.models.category import Category
from storefront.models.order import Order, OrderItem, OrderStatus
from storefront.models.product import Product, ProductImage
from storefront.models.user import User


def _create_user(db: Session, username: str = "schema_user") -> User:
    user = User(
        username=username,
        email=f"{username}@example.com",
        password_hash=hash_password("StrongPass1"),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def _create_product(db: Session, category: Category | None = None, **overrides) -> Product:
    product = Product(
        name=overrides.pop("name", "Desk Lamp"),
        price=overrides.pop("price", Decimal("45.00")),
        stock_quantity=overrides.pop("stock_quantity", 10),
        category=category,
        **overrides,
    )
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


def test_username_and_email_are_unique(db_session: Session):
    _create_user(db_session, "taken")

    db_session.add(
        User(username="taken", email="other@example.com", password_hash="x")
    )
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()

    db_session.add(
        User(username="someone_else", email="taken@example.com", password_hash="x")
    )
    with pytest.raises(IntegrityError):
        db_session.commit()


def test_category_name_is_unique(db_session: Session):
    db_session.add(Category(name="Garden"))
    db_session.commit()

    db_session.add(Category(name="Garden"))
    with pytest.raises(IntegrityError):
        db_session.commit()


def test_defaults_are_applied(db_session: Session):
    user = _create_user(db_session)
    product = Product(name="Default Stock", price=Decimal("5.00"))
    db_session.add(product)
    order = Order(user_id=user.id, total_amount=Decimal("0.00"))
    db_session.add(order)
    db_session.commit()

    assert user.created_at is not None
    assert user.is_active is True
    assert product.stock_quantity == 0
    assert product.created_at is not None
    assert order.status == OrderStatus.PENDING
    assert order.order_date is not None


def test_product_price_and_stock_cannot_be_negative(db_session: Session):
    db_session.add(Product(name="Broken", price=Decimal("-1.00"), stock_quantity=1))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()

    db_session.add(Product(name="Broken", price=Decimal("1.00"), stock_quantity=-1))
    with pytest.raises(IntegrityError):
        db_session.commit()


def test_product_category_must_exist(db_session: Session):
    db_session.add(Product(name="Orphan", price=Decimal("5.00"), category_id=999))
    with pytest.raises(IntegrityError):
        db_session.commit()


def test_deleting_category_keeps_its_products(db_session: Session):
    category = Category(name="Seasonal")
    db_session.add(category)
    db_session.commit()
    product = _create_product(db_session, category=category)

    db_session.execute(delete(Category).where(Category.id == category.id))
    db_session.commit()

    db_session.refresh(product)
    assert product.category_id is None


def test_deleting_product_removes_its_images(db_session: Session):
    product = _create_product(db_session)
    product.images.append(ProductImage(image_url="lamp_front.jpg"))
    product.images.append(ProductImage(image_url="lamp_side.jpg"))
    db_session.commit()

    db_session.execute(delete(Product).where(Product.id == product.id))
    db_session.commit()

    assert db_session.query(ProductImage).count() == 0


def test_image_requires_existing_product(db_session: Session):
    db_session.add(ProductImage(product_id=12345, image_url="ghost.jpg"))
    with pytest.raises(IntegrityError):
        db_session.commit()


def test_ordered_product_cannot_be_deleted(db_session: Session):
    user = _create_user(db_session)
    product = _create_product(db_session)
    order = Order(user_id=user.id, total_amount=Decimal("45.00"))
    order.items.append(OrderItem(product_id=product.id, quantity=1, unit_price=Decimal("45.00")))
    db_session.add(order)
    db_session.commit()

    with pytest.raises(IntegrityError):
        db_session.execute(delete(Product).where(Product.id == product.id))
        db_session.commit()


def test_deleting_order_removes_its_items(db_session: Session):
    user = _create_user(db_session)
    product = _create_product(db_session)
    order = Order(user_id=user.id, total_amount=Decimal("90.00"))
    order.items.append(OrderItem(product_id=product.id, quantity=2, unit_price=Decimal("45.00")))
    db_session.add(order)
    db_session.commit()

    db_session.execute(delete(Order).where(Order.id == order.id))
    db_session.commit()

    assert db_session.query(OrderItem).count() == 0


def test_order_item_quantity_must_be_positive(db_session: Session):
    user = _create_user(db_session)
    product = _create_product(db_session)
    order = Order(user_id=user.id, total_amount=Decimal("0.00"))
    order.items.append(OrderItem(product_id=product.id, quantity=0, unit_price=Decimal("45.00")))
    db_session.add(order)
    with pytest.raises(IntegrityError):
        db_session.commit()


def test_order_requires_existing_user(db_session: Session):
    db_session.add(Order(user_id=4242, total_amount=Decimal("10.00")))
    with pytest.raises(IntegrityError):
        db_session.commit()


def test_order_status_rejects_unknown_values(db_session: Session):
    user = _create_user(db_session)
    db_session.add(Order(user_id=user.id, total_amount=Decimal("10.00"), status="shipped"))
    with pytest.raises(StatementError):
        db_session.commit()


def test_order_item_line_total():
    item = OrderItem(quantity=3, unit_price=Decimal("19.99"))
    assert item.line_total == Decimal("59.97")
