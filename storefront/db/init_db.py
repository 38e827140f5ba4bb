from decimal import Decimal
from typing import Dict

from sqlalchemy.orm import Session
import structlog

from storefront.core.config import settings
from storefront.core.security import hash_password
from storefront.db import sample_data
from storefront.models.category import Category
from storefront.models.order import Order, OrderItem, OrderStatus
from storefront.models.product import Product, ProductImage
from storefront.models.user import User, UserRole

logger = structlog.get_logger()


def bootstrap_admin(db: Session) -> None:
    """Create the configured admin account if it does not exist yet."""
    admin = db.query(User).filter(User.username == settings.DEFAULT_ADMIN_USERNAME).first()
    if admin:
        return

    seed_password = (settings.DEFAULT_ADMIN_PASSWORD or "").strip()
    if not seed_password:
        message = (
            "Missing admin bootstrap credentials: set DEFAULT_ADMIN_PASSWORD "
            "or create an admin user manually before launch."
        )
        if settings.ENVIRONMENT == "production":
            logger.error("admin_bootstrap_failed", reason=message, env=settings.ENVIRONMENT)
            raise RuntimeError(message)
        logger.warning("admin_bootstrap_skipped", reason=message, env=settings.ENVIRONMENT)
        return

    db.add(
        User(
            username=settings.DEFAULT_ADMIN_USERNAME,
            email=settings.DEFAULT_ADMIN_EMAIL,
            password_hash=hash_password(seed_password),
            role=UserRole.ADMIN,
            is_active=True,
        )
    )
    logger.info("admin_user_created", username=settings.DEFAULT_ADMIN_USERNAME)


def _has_matching_order(db: Session, user_id: int, status: OrderStatus, quantities: Dict[int, int]) -> bool:
    """A sample order is identified by its owner, status and exact item set."""
    candidates = db.query(Order).filter(Order.user_id == user_id, Order.status == status).all()
    return any(
        {item.product_id: item.quantity for item in order.items} == quantities
        for order in candidates
    )


def load_sample_data(db: Session) -> None:
    """Insert the sample catalog and orders. Rows already present are left alone."""
    users = {}
    for user_data in sample_data.SAMPLE_USERS:
        user = db.query(User).filter(User.username == user_data["username"]).first()
        if not user:
            user = User(
                username=user_data["username"],
                email=user_data["email"],
                password_hash=hash_password(sample_data.SAMPLE_PASSWORD),
            )
            db.add(user)
            logger.info("user_created", username=user_data["username"])
        users[user.username] = user

    categories = {}
    for cat_data in sample_data.SAMPLE_CATEGORIES:
        category = db.query(Category).filter(Category.name == cat_data["name"]).first()
        if not category:
            category = Category(name=cat_data["name"], description=cat_data["description"])
            db.add(category)
            logger.info("category_created", name=cat_data["name"])
        categories[category.name] = category

    db.flush()

    products = {}
    for product_data in sample_data.SAMPLE_PRODUCTS:
        product = db.query(Product).filter(Product.name == product_data["name"]).first()
        if not product:
            product = Product(
                name=product_data["name"],
                description=product_data["description"],
                price=product_data["price"],
                stock_quantity=product_data["stock_quantity"],
                category=categories[product_data["category"]],
            )
            for image_url in product_data["images"]:
                product.images.append(ProductImage(image_url=image_url))
            db.add(product)
            logger.info("product_created", name=product_data["name"])
        products[product.name] = product

    db.flush()

    for order_data in sample_data.SAMPLE_ORDERS:
        user = users[order_data["username"]]
        status = OrderStatus(order_data["status"])
        quantities = {
            products[product_name].id: quantity
            for product_name, quantity in order_data["items"]
        }
        if _has_matching_order(db, user.id, status, quantities):
            continue

        order = Order(user_id=user.id, status=status, total_amount=Decimal("0.00"))
        total_amount = Decimal("0.00")
        for product_name, quantity in order_data["items"]:
            product = products[product_name]
            order.items.append(
                OrderItem(product_id=product.id, quantity=quantity, unit_price=product.price)
            )
            total_amount += product.price * quantity
        order.total_amount = total_amount
        db.add(order)
        logger.info("order_created", username=user.username, status=status.value)


def init_db(db: Session, with_sample_data: bool = True) -> None:
    """Initialize database with default data"""
    bootstrap_admin(db)
    if with_sample_data:
        load_sample_data(db)
    db.commit()
    logger.info("database_initialized", sample_data=with_sample_data)


if __name__ == "__main__":
    from storefront.core.logging_config import configure_logging
    from storefront.db.session import SessionLocal

    configure_logging()
    db = SessionLocal()
    try:
        init_db(db)
    finally:
        db.close()
