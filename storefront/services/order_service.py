from sqlalchemy.orm import Session
from decimal import Decimal
from typing import Dict, Iterable, List
import structlog

from storefront.core.exceptions import InsufficientStock, InvalidStatusTransition, ProductNotFound
from storefront.models.order import ALLOWED_STATUS_TRANSITIONS, Order, OrderItem, OrderStatus
from storefront.models.product import Product
from storefront.schemas.order import OrderItemCreate

logger = structlog.get_logger()

CENT = Decimal("0.01")


def _merge_quantities(items: Iterable[OrderItemCreate]) -> Dict[int, int]:
    requested_quantities: Dict[int, int] = {}
    for item in items:
        requested_quantities[item.product_id] = requested_quantities.get(item.product_id, 0) + item.quantity
    return requested_quantities


def _lock_products(db: Session, product_ids: Iterable[int]) -> Dict[int, Product]:
    """Lock products in ascending id order so concurrent orders cannot deadlock."""
    ordered_ids = sorted(set(product_ids))
    if not ordered_ids:
        return {}
    return {
        product.id: product
        for product in (
            db.query(Product)
            .filter(Product.id.in_(ordered_ids))
            .order_by(Product.id.asc())
            .with_for_update()
            .all()
        )
    }


def place_order(db: Session, user_id: int, items: List[OrderItemCreate]) -> Order:
    """
    Create a pending order, deducting stock and snapshotting unit prices.

    Args:
        db (Session): Database session
        user_id (int): Owner of the order
        items (List[OrderItemCreate]): Requested products; repeated products are merged

    Returns:
        Order: The committed order with its items
    """
    requested_quantities = _merge_quantities(items)

    try:
        locked_products = _lock_products(db, requested_quantities.keys())

        for product_id in requested_quantities:
            if product_id not in locked_products:
                raise ProductNotFound()

        for product_id, requested_qty in requested_quantities.items():
            product = locked_products[product_id]
            if product.stock_quantity < requested_qty:
                raise InsufficientStock(product.name, product.stock_quantity)

        total_amount = Decimal("0.00")
        order = Order(user_id=user_id, status=OrderStatus.PENDING, total_amount=total_amount)

        for product_id, requested_qty in requested_quantities.items():
            product = locked_products[product_id]
            unit_price = Decimal(product.price).quantize(CENT)
            product.stock_quantity -= requested_qty
            total_amount += unit_price * requested_qty
            order.items.append(
                OrderItem(
                    product_id=product.id,
                    quantity=requested_qty,
                    unit_price=unit_price,
                )
            )

        order.total_amount = total_amount.quantize(CENT)
        db.add(order)
        db.commit()
        db.refresh(order)
    except Exception:
        db.rollback()
        raise

    logger.info(
        "order_created",
        order_id=order.id,
        user_id=user_id,
        item_count=len(order.items),
        total_amount=str(order.total_amount),
    )
    return order


def restock_order_items(db: Session, order: Order) -> None:
    locked_products = _lock_products(db, (item.product_id for item in order.items))
    for item in order.items:
        product = locked_products.get(item.product_id)
        if product:
            product.stock_quantity += item.quantity


def _lock_order(db: Session, order_id: int) -> Order:
    """Re-read the order under a row lock, discarding any stale in-session state."""
    return (
        db.query(Order)
        .filter(Order.id == order_id)
        .populate_existing()
        .with_for_update()
        .one()
    )


def change_order_status(db: Session, order: Order, new_status: OrderStatus) -> Order:
    """
    Move an order to a new status.

    Only pending orders may change; canceling returns the items to stock.
    The status is written with a compare-and-set on the status read under
    the lock, so two concurrent transitions cannot both succeed.

    Raises:
        InvalidStatusTransition: when the transition is not allowed
    """
    try:
        order = _lock_order(db, order.id)
        previous_status = order.status
        if new_status not in ALLOWED_STATUS_TRANSITIONS[previous_status]:
            raise InvalidStatusTransition(previous_status.value, new_status.value)

        updated = (
            db.query(Order)
            .filter(Order.id == order.id, Order.status == previous_status)
            .update({Order.status: new_status}, synchronize_session=False)
        )
        if updated != 1:
            raise InvalidStatusTransition(previous_status.value, new_status.value)

        if new_status == OrderStatus.CANCELED:
            restock_order_items(db, order)
        db.commit()
        db.refresh(order)
    except Exception:
        db.rollback()
        raise

    logger.info(
        "order_status_changed",
        order_id=order.id,
        user_id=order.user_id,
        previous_status=previous_status.value,
        new_status=new_status.value,
    )
    return order
