from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query, HTTPException, Request, status
from sqlalchemy.orm import Session, selectinload
import structlog

from storefront.api.deps import require_admin
from storefront.core.exceptions import CategoryNotFound, ProductImageNotFound, ProductInUse, ProductNotFound
from storefront.core.rate_limiter import limiter
from storefront.db.session import get_db
from storefront.models.category import Category
from storefront.models.order import OrderItem
from storefront.models.product import Product, ProductImage
from storefront.models.user import User
from storefront.schemas.category import CategoryResponse
from storefront.schemas.product import (
    ProductCreate,
    ProductDetailResponse,
    ProductImageCreate,
    ProductImageResponse,
    ProductListResponse,
    ProductUpdate,
)
from storefront.utils.response import paginated_response, success

router = APIRouter()
logger = structlog.get_logger()


def _primary_image(product: Product) -> Optional[str]:
    return product.images[0].image_url if product.images else None


def _category_summary(product: Product) -> Optional[CategoryResponse]:
    if product.category is None:
        return None
    return CategoryResponse.model_validate(product.category)


def _product_summary(product: Product) -> dict:
    return ProductListResponse(
        id=product.id,
        name=product.name,
        price=product.price,
        stock_quantity=product.stock_quantity,
        category=_category_summary(product),
        primary_image=_primary_image(product),
        in_stock=product.stock_quantity > 0,
    ).model_dump()


def _product_detail(product: Product) -> dict:
    return ProductDetailResponse(
        id=product.id,
        name=product.name,
        description=product.description,
        price=product.price,
        stock_quantity=product.stock_quantity,
        category=_category_summary(product),
        primary_image=_primary_image(product),
        in_stock=product.stock_quantity > 0,
        images=[ProductImageResponse.model_validate(image) for image in product.images],
        created_at=product.created_at,
    ).model_dump()


def _get_product_or_404(db: Session, product_id: int) -> Product:
    product = (
        db.query(Product)
        .options(selectinload(Product.category), selectinload(Product.images))
        .filter(Product.id == product_id)
        .first()
    )
    if not product:
        raise ProductNotFound()
    return product


def _require_existing_category(db: Session, category_id: int) -> Category:
    category = db.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise CategoryNotFound()
    return category


@router.get("", response_model=dict)
@router.get("/", response_model=dict)
@limiter.limit("100/minute")
def get_products(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    category_id: Optional[int] = None,
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    search: Optional[str] = Query(None, max_length=100),
    in_stock: Optional[bool] = None,
    db: Session = Depends(get_db)
):
    """
    Get products with filtering and pagination
    """
    if min_price is not None and max_price is not None and min_price > max_price:
        raise HTTPException(status_code=400, detail="min_price cannot exceed max_price")

    query = db.query(Product).options(
        selectinload(Product.category),
        selectinload(Product.images),
    )

    if category_id is not None:
        query = query.filter(Product.category_id == category_id)

    if min_price is not None:
        query = query.filter(Product.price >= min_price)

    if max_price is not None:
        query = query.filter(Product.price <= max_price)

    if search:
        search_term = f"%{search.strip()}%"
        query = query.filter(Product.name.ilike(search_term) | Product.description.ilike(search_term))

    if in_stock is True:
        query = query.filter(Product.stock_quantity > 0)
    elif in_stock is False:
        query = query.filter(Product.stock_quantity == 0)

    total = query.count()
    products = (
        query.order_by(Product.name.asc(), Product.id.asc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return paginated_response(
        [_product_summary(product) for product in products],
        total=total,
        page=page,
        limit=limit,
        message="Products retrieved",
    )


@router.get("/{product_id}", response_model=dict)
@limiter.limit("100/minute")
def get_product_detail(request: Request, product_id: int, db: Session = Depends(get_db)):
    """Get product details with all image locations."""
    product = _get_product_or_404(db, product_id)
    return success(data=_product_detail(product), message="Product retrieved")


@router.post("", response_model=dict, status_code=status.HTTP_201_CREATED)
@router.post("/", response_model=dict, status_code=status.HTTP_201_CREATED, include_in_schema=False)
@limiter.limit("30/minute")
def create_product(
    request: Request,
    payload: ProductCreate,
    current_admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Admin: Create new product, optionally with image locations"""
    if payload.category_id is not None:
        _require_existing_category(db, payload.category_id)

    product = Product(
        name=payload.name,
        description=payload.description,
        price=payload.price,
        stock_quantity=payload.stock_quantity,
        category_id=payload.category_id,
    )
    for image_url in payload.image_urls:
        product.images.append(ProductImage(image_url=image_url))

    db.add(product)
    db.commit()

    product = _get_product_or_404(db, product.id)
    logger.info("product_created", product_id=product.id, image_count=len(product.images))
    return success(data=_product_detail(product), message="Product created successfully")


@router.put("/{product_id}", response_model=dict)
@limiter.limit("30/minute")
def update_product(
    request: Request,
    product_id: int,
    payload: ProductUpdate,
    current_admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Admin: Update product fields, stock or category"""
    product = _get_product_or_404(db, product_id)

    if payload.clear_category and payload.category_id is not None:
        raise HTTPException(status_code=400, detail="Use either category_id or clear_category")

    if payload.name is not None:
        product.name = payload.name

    if payload.description is not None:
        product.description = payload.description

    if payload.price is not None:
        product.price = payload.price

    if payload.stock_quantity is not None:
        product.stock_quantity = payload.stock_quantity

    if payload.category_id is not None:
        _require_existing_category(db, payload.category_id)
        product.category_id = payload.category_id
    elif payload.clear_category:
        product.category_id = None

    db.commit()

    product = _get_product_or_404(db, product_id)
    return success(data=_product_detail(product), message="Product updated successfully")


@router.delete("/{product_id}", response_model=dict)
@limiter.limit("20/minute")
def delete_product(
    request: Request,
    product_id: int,
    current_admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Admin: Delete product and its images. Products with order history are kept."""
    product = _get_product_or_404(db, product_id)

    has_orders = (
        db.query(OrderItem.id).filter(OrderItem.product_id == product.id).first()
        is not None
    )
    if has_orders:
        raise ProductInUse()

    db.delete(product)
    db.commit()

    logger.info("product_deleted", product_id=product_id)
    return success(data={"id": product_id}, message="Product deleted successfully")


# ============= PRODUCT IMAGES =============

@router.get("/{product_id}/images", response_model=dict)
@limiter.limit("100/minute")
def list_product_images(request: Request, product_id: int, db: Session = Depends(get_db)):
    product = _get_product_or_404(db, product_id)
    images = [ProductImageResponse.model_validate(image).model_dump() for image in product.images]
    return success(data=images, message="Product images retrieved")


@router.post("/{product_id}/images", response_model=dict, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def add_product_image(
    request: Request,
    product_id: int,
    payload: ProductImageCreate,
    current_admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Admin: Attach an image location to a product"""
    product = _get_product_or_404(db, product_id)

    image = ProductImage(product_id=product.id, image_url=payload.image_url)
    db.add(image)
    db.commit()
    db.refresh(image)

    return success(
        data=ProductImageResponse.model_validate(image).model_dump(),
        message="Product image added",
    )


@router.delete("/{product_id}/images/{image_id}", response_model=dict)
@limiter.limit("30/minute")
def delete_product_image(
    request: Request,
    product_id: int,
    image_id: int,
    current_admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Admin: Remove an image from a product"""
    image = (
        db.query(ProductImage)
        .filter(ProductImage.id == image_id, ProductImage.product_id == product_id)
        .first()
    )
    if not image:
        raise ProductImageNotFound()

    db.delete(image)
    db.commit()

    return success(data={"id": image_id}, message="Product image deleted")
