import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session, func, or_, select

from app.database import get_session
from app.dependencies.admin import require_admin
from app.models.order_item import OrderItem
from app.models.product import Product
from app.models.product_size import ProductSize
from app.models.user import User
from app.schemas.product_schemas import ProductCreate, ProductUpdate, StockUpdate
from app.services.catalog_service import create_product, serialize_product, update_product
from app.utils.pagination import paginate

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
def list_products_admin(
    page: int = 1,
    limit: int = 20,
    search: Optional[str] = None,
    category_id: Optional[int] = None,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    query = select(Product)

    if search:
        like = f"%{search}%"
        query = query.where(or_(Product.name.ilike(like), Product.sku.ilike(like)))

    if category_id:
        query = query.where(Product.category_id == category_id)

    query = query.order_by(Product.created_at.desc(), Product.id.desc())

    return paginate(
        session=session,
        query=query,
        page=page,
        limit=limit,
        serialize=lambda p: {
            "id": p.id,
            "name": p.name,
            "sku": p.sku,
            "price": p.price,
            "category_id": p.category_id,
            "featured": p.featured,
            "total_stock": p.total_stock,
            "sizes": [{"size": s.size, "stock": s.stock} for s in p.sizes],
        },
    )


@router.post("", status_code=status.HTTP_201_CREATED)
def create_product_admin(
    data: ProductCreate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    product = create_product(session, data)
    logger.info(f"Admin {admin.id} created product {product.id}")
    return serialize_product(session, product)


@router.put("/{product_id}")
def update_product_admin(
    product_id: int,
    data: ProductUpdate,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    product = session.get(Product, product_id)
    if not product:
        raise HTTPException(404, "Product not found")

    product = update_product(session, product, data)
    return serialize_product(session, product)


@router.put("/{product_id}/sizes/{size}")
def set_size_stock(
    product_id: int,
    size: str,
    data: StockUpdate,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    if not session.get(Product, product_id):
        raise HTTPException(404, "Product not found")

    product_size = session.get(ProductSize, (product_id, size))
    if product_size:
        product_size.stock = data.stock
    else:
        product_size = ProductSize(product_id=product_id, size=size, stock=data.stock)

    session.add(product_size)
    session.commit()

    return {"product_id": product_id, "size": size, "stock": data.stock}


@router.delete("/{product_id}")
def delete_product_admin(
    product_id: int,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    product = session.get(Product, product_id)
    if not product:
        raise HTTPException(404, "Product not found")

    ordered = session.exec(
        select(func.count(OrderItem.id)).where(OrderItem.product_id == product_id)
    ).one()
    if ordered:
        raise HTTPException(
            400, f"Cannot delete a product that appears on {ordered} order line(s)"
        )

    session.delete(product)
    session.commit()
    logger.info(f"Product {product_id} deleted")

    return {"message": "Product deleted"}
