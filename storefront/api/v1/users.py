from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from storefront.api.deps import get_current_user
from storefront.core.rate_limiter import limiter
from storefront.db.session import get_db
from storefront.models.order import Order
from storefront.models.user import User
from storefront.schemas.user import UserResponse
from storefront.utils.response import success

router = APIRouter()


@router.get("/me", response_model=dict)
@limiter.limit("60/minute")
def get_me(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get the authenticated user's profile"""
    data = UserResponse.model_validate(current_user).model_dump()
    data["order_count"] = db.query(Order).filter(Order.user_id == current_user.id).count()
    return success(data=data, message="Profile retrieved")
