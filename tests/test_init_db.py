from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.core.security import hash_password, verify_password
from storefront.db.init_db import init_db, load_sample_data
from storefront.db.sample_data import SAMPLE_PASSWORD
from storefront.models.category import Category
from storefront.models.order import Order, OrderItem, OrderStatus
from storefront.models.product import Product
from storefront.models.user import User, UserRole


def test_sample_data_contents(db_session: Session):
    load_sample_data(db_session)
    db_session.commit()

    assert db_session.query(Category).count() == 3
    assert db_session.query(Product).count() == 6

    john = db_session.query(User).filter(User.username == "john_doe").one()
    assert john.role == UserRole.CUSTOMER
    assert verify_password(SAMPLE_PASSWORD, john.password_hash)

    totals = {
        order.status: order.total_amount
        for order in db_session.query(Order).all()
    }
    assert totals == {
        OrderStatus.COMPLETED: Decimal("1300.00"),
        OrderStatus.PENDING: Decimal("860.00"),
        OrderStatus.CANCELED: Decimal("30.00"),
    }
    for order in db_session.query(Order).all():
        assert order.total_amount == sum(item.line_total for item in order.items)


def test_init_db_creates_admin(db_session: Session, monkeypatch):
    monkeypatch.setattr(settings, "DEFAULT_ADMIN_PASSWORD", "AdminPass123")

    init_db(db_session, with_sample_data=False)
    init_db(db_session, with_sample_data=False)

    admins = db_session.query(User).filter(User.role == UserRole.ADMIN).all()
    assert len(admins) == 1
    assert admins[0].username == settings.DEFAULT_ADMIN_USERNAME
    assert verify_password("AdminPass123", admins[0].password_hash)
    assert db_session.query(Product).count() == 0


def test_init_db_skips_admin_without_password(db_session: Session, monkeypatch):
    monkeypatch.setattr(settings, "DEFAULT_ADMIN_PASSWORD", "")

    init_db(db_session)

    assert db_session.query(User).filter(User.role == UserRole.ADMIN).count() == 0
    assert db_session.query(Order).count() == 3


def test_init_db_requires_admin_password_in_production(db_session: Session, monkeypatch):
    monkeypatch.setattr(settings, "DEFAULT_ADMIN_PASSWORD", "")
    monkeypatch.setattr(settings, "ENVIRONMENT", "production")

    with pytest.raises(RuntimeError):
        init_db(db_session, with_sample_data=False)


def test_live_order_does_not_hide_sample_order(db_session: Session):
    jane = User(
        username="jane_smith",
        email="jane.smith@example.com",
        password_hash=hash_password("StrongPass1"),
    )
    desk = Product(name="Standing Desk", price=Decimal("320.00"), stock_quantity=4)
    db_session.add_all([jane, desk])
    db_session.flush()
    live_order = Order(user_id=jane.id, status=OrderStatus.PENDING, total_amount=Decimal("320.00"))
    live_order.items.append(OrderItem(product_id=desk.id, quantity=1, unit_price=Decimal("320.00")))
    db_session.add(live_order)
    db_session.commit()

    load_sample_data(db_session)
    db_session.commit()
    load_sample_data(db_session)
    db_session.commit()

    pending_totals = sorted(
        order.total_amount
        for order in db_session.query(Order).filter(
            Order.user_id == jane.id, Order.status == OrderStatus.PENDING
        )
    )
    assert pending_totals == [Decimal("320.00"), Decimal("860.00")]
    assert db_session.query(Order).count() == 4
