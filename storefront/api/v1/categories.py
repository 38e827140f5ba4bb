from fastapi import APIRouter, Depends, Request, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import structlog

from storefront.api.deps import require_admin
from storefront.core.exceptions import CategoryAlreadyExists, CategoryNotFound
from storefront.core.rate_limiter import limiter
from storefront.db.session import get_db
from storefront.models.category import Category
from storefront.models.product import Product
from storefront.models.user import User
from storefront.schemas.category import CategoryCreate, CategoryResponse, CategoryUpdate
from storefront.utils.response import success

router = APIRouter()
logger = structlog.get_logger()


def _get_category_or_404(db: Session, category_id: int) -> Category:
    category = db.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise CategoryNotFound()
    return category


def _ensure_unique_name(db: Session, name: str, exclude_id: int | None = None) -> None:
    query = db.query(Category.id).filter(func.lower(Category.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    if query.first() is not None:
        raise CategoryAlreadyExists()


@router.get("", response_model=dict)
@router.get("/", response_model=dict)
@limiter.limit("100/minute")
def list_categories(request: Request, db: Session = Depends(get_db)):
    """Public: categories ordered by name, with their product counts."""
    product_counts = dict(
        db.query(Product.category_id, func.count(Product.id))
        .filter(Product.category_id.isnot(None))
        .group_by(Product.category_id)
        .all()
    )
    categories = db.query(Category).order_by(Category.name.asc(), Category.id.asc()).all()

    data = []
    for category in categories:
        entry = CategoryResponse.model_validate(category).model_dump()
        entry["product_count"] = int(product_counts.get(category.id, 0))
        data.append(entry)
    return success(data=data, message="Categories retrieved")


@router.get("/{category_id}", response_model=dict)
@limiter.limit("100/minute")
def get_category(request: Request, category_id: int, db: Session = Depends(get_db)):
    category = _get_category_or_404(db, category_id)
    return success(
        data=CategoryResponse.model_validate(category).model_dump(),
        message="Category retrieved",
    )


@router.post("", response_model=dict, status_code=status.HTTP_201_CREATED)
@router.post("/", response_model=dict, status_code=status.HTTP_201_CREATED, include_in_schema=False)
@limiter.limit("30/minute")
def create_category(
    request: Request,
    payload: CategoryCreate,
    current_admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Admin: Create category"""
    _ensure_unique_name(db, payload.name)

    category = Category(name=payload.name, description=payload.description)
    db.add(category)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise CategoryAlreadyExists() from exc
    db.refresh(category)

    logger.info("category_created", category_id=category.id, name=category.name)
    return success(
        data=CategoryResponse.model_validate(category).model_dump(),
        message="Category created",
    )


@router.put("/{category_id}", response_model=dict)
@limiter.limit("30/minute")
def update_category(
    request: Request,
    category_id: int,
    payload: CategoryUpdate,
    current_admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Admin: Update category"""
    category = _get_category_or_404(db, category_id)

    if payload.name is not None and payload.name != category.name:
        _ensure_unique_name(db, payload.name, exclude_id=category.id)
        category.name = payload.name

    if payload.description is not None:
        category.description = payload.description

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise CategoryAlreadyExists() from exc
    db.refresh(category)

    return success(
        data=CategoryResponse.model_validate(category).model_dump(),
        message="Category updated",
    )


@router.delete("/{category_id}", response_model=dict)
@limiter.limit("20/minute")
def delete_category(
    request: Request,
    category_id: int,
    current_admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Admin: Delete category. Its products stay in the catalog without a category."""
    category = _get_category_or_404(db, category_id)
    detached = db.query(Product).filter(Product.category_id == category.id).count()

    db.delete(category)
    db.commit()

    logger.info("category_deleted", category_id=category_id, detached_products=detached)
    return success(
        data={"id": category_id, "detached_products": detached},
        message="Category deleted",
    )
