from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session, selectinload

from storefront.api.deps import get_current_user, require_admin
from storefront.core.exceptions import OrderNotFound
from storefront.core.rate_limiter import limiter
from storefront.db.session import get_db
from storefront.models.order import Order, OrderStatus
from storefront.models.user import User
from storefront.schemas.order import OrderCreate, OrderResponse, OrderStatusUpdate
from storefront.services.order_service import change_order_status, place_order
from storefront.utils.response import paginated_response, success

router = APIRouter()


def _serialize_order(order: Order) -> dict:
    return OrderResponse.model_validate(order).model_dump()


def _get_user_order_or_404(db: Session, order_id: int, user: User) -> Order:
    order = (
        db.query(Order)
        .options(selectinload(Order.items))
        .filter(Order.id == order_id, Order.user_id == user.id)
        .first()
    )
    if not order:
        raise OrderNotFound()
    return order


@router.post(
    "/",
    response_model=dict,
    status_code=status.HTTP_201_CREATED,
    summary="Create new order",
    description="""
Creates a pending order for the authenticated user.

Process:
1. Merges repeated products into one line each
2. Locks products in id order to prevent overselling
3. Verifies stock for every line
4. Snapshots unit prices and computes the total
5. Deducts stock and commits in one transaction
""",
    responses={
        201: {"description": "Order created successfully"},
        400: {"description": "Insufficient stock"},
        401: {"description": "Authentication required"},
        404: {"description": "Product not found"},
    },
)
@limiter.limit("10/minute")
def create_order(
    request: Request,
    order_data: OrderCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    order = place_order(db, current_user.id, order_data.items)
    return success(data=_serialize_order(order), message="Order created successfully")


@router.get("/", response_model=dict)
@limiter.limit("30/minute")
def get_user_orders(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get user's order history"""
    orders = (
        db.query(Order)
        .options(selectinload(Order.items))
        .filter(Order.user_id == current_user.id)
        .order_by(Order.order_date.desc(), Order.id.desc())
        .all()
    )
    return success(data=[_serialize_order(order) for order in orders], message="Orders retrieved")


@router.get("/admin/all", response_model=dict)
@limiter.limit("60/minute")
def get_all_orders(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    order_status: Optional[OrderStatus] = Query(None, alias="status"),
    current_admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Admin: List all orders, optionally filtered by status"""
    query = db.query(Order).options(selectinload(Order.items))
    if order_status is not None:
        query = query.filter(Order.status == order_status)

    total = query.count()
    orders = (
        query.order_by(Order.order_date.desc(), Order.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return paginated_response(
        [_serialize_order(order) for order in orders],
        total=total,
        page=page,
        limit=limit,
        message="Orders retrieved",
    )


@router.get("/{order_id}", response_model=dict)
@limiter.limit("30/minute")
def get_order_detail(
    request: Request,
    order_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get order details"""
    order = _get_user_order_or_404(db, order_id, current_user)
    return success(data=_serialize_order(order), message="Order retrieved")


@router.post("/{order_id}/cancel", response_model=dict)
@limiter.limit("10/minute")
def cancel_order(
    request: Request,
    order_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Cancel one of the user's pending orders and return its items to stock"""
    order = _get_user_order_or_404(db, order_id, current_user)
    order = change_order_status(db, order, OrderStatus.CANCELED)
    return success(data=_serialize_order(order), message="Order canceled")


@router.put(
    "/{order_id}/status",
    response_model=dict,
    summary="Update order status (admin)",
    description="""
Moves an order to a new status.

Allowed transitions:
1. pending -> completed
2. pending -> canceled (items return to stock)
""",
    responses={
        200: {"description": "Order status updated successfully"},
        403: {"description": "Admin access required"},
        404: {"description": "Order not found"},
        409: {"description": "Transition not allowed"},
    },
)
@limiter.limit("30/minute")
def update_order_status(
    request: Request,
    order_id: int,
    payload: OrderStatusUpdate,
    current_admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    order = (
        db.query(Order)
        .options(selectinload(Order.items))
        .filter(Order.id == order_id)
        .first()
    )
    if not order:
        raise OrderNotFound()

    order = change_order_status(db, order, payload.target_status)
    return success(data=_serialize_order(order), message="Order status updated successfully")
