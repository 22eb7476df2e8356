from datetime import datetime
from typing import Dict, List, Optional, Tuple

from fastapi import HTTPException
from slugify import slugify
from sqlmodel import Session, func, select

from app.models.category import Category
from app.models.product import Product
from app.models.product_image import ProductDetail, ProductImage
from app.models.product_size import ProductSize
from app.models.review import ProductReview
from app.schemas.product_schemas import ProductCreate, ProductUpdate


def rating_summary(session: Session, product_id: int) -> Tuple[float, int]:
    avg, count = session.exec(
        select(func.avg(ProductReview.rating), func.count(ProductReview.id))
        .where(ProductReview.product_id == product_id)
    ).one()
    return round(float(avg or 0), 1), count


def serialize_product_card(product: Product) -> dict:
    image = product.images[0].url if product.images else None
    return {
        "id": product.id,
        "name": product.name,
        "slug": product.slug,
        "price": product.price,
        "brand": product.brand,
        "featured": product.featured,
        "category_id": product.category_id,
        "image": image,
        "in_stock": product.in_stock,
    }


def serialize_product(session: Session, product: Product) -> dict:
    average, count = rating_summary(session, product.id)
    data = serialize_product_card(product)
    data.update({
        "description": product.description,
        "sku": product.sku,
        "delivery_time": product.delivery_time,
        "warranty": product.warranty,
        "quality": product.quality,
        "shipping_fee": product.shipping_fee,
        "category": product.category.name if product.category else None,
        "sizes": [{"size": s.size, "stock": s.stock} for s in product.sizes],
        "images": [
            {"url": i.url, "view_type": i.view_type, "alt": i.alt, "sort_order": i.sort_order}
            for i in product.images
        ],
        "details": [
            {"label": d.label, "value": d.value, "sort_order": d.sort_order}
            for d in product.details
        ],
        "rating": {"average": average, "count": count},
        "created_at": product.created_at,
        "updated_at": product.updated_at,
    })
    return data


def category_tree(categories: List[Category], product_counts: Dict[int, int]) -> List[dict]:
    nodes = {
        c.id: {
            "id": c.id,
            "name": c.name,
            "slug": c.slug,
            "description": c.description,
            "image": c.image,
            "parent_id": c.parent_id,
            "product_count": product_counts.get(c.id, 0),
            "children": [],
        }
        for c in categories
    }

    roots = []
    for node in nodes.values():
        parent = nodes.get(node["parent_id"])
        if parent:
            parent["children"].append(node)
        else:
            roots.append(node)
    return roots


def product_counts_by_category(session: Session) -> Dict[int, int]:
    rows = session.exec(
        select(Product.category_id, func.count(Product.id)).group_by(Product.category_id)
    ).all()
    return {category_id: count for category_id, count in rows}


def _ensure_category(session: Session, category_id: int) -> None:
    if not session.get(Category, category_id):
        raise HTTPException(400, "Category not found")


def _ensure_unique_sku(session: Session, sku: Optional[str], product_id: Optional[int] = None) -> None:
    if not sku:
        return
    query = select(Product.id).where(Product.sku == sku)
    if product_id is not None:
        query = query.where(Product.id != product_id)
    if session.exec(query).first() is not None:
        raise HTTPException(
            400,
            f'A product with SKU "{sku}" already exists. Please use a different SKU or leave it blank.',
        )


def _replace_collections(product: Product, data) -> None:
    if data.sizes is not None:
        seen = set()
        for s in data.sizes:
            if s.size in seen:
                raise HTTPException(400, f"Size {s.size} listed more than once")
            seen.add(s.size)
        product.sizes = [ProductSize(size=s.size, stock=s.stock) for s in data.sizes]

    if data.images is not None:
        product.images = [
            ProductImage(url=i.url, view_type=i.view_type.value, alt=i.alt or "", sort_order=i.sort_order)
            for i in data.images
        ]

    if data.details is not None:
        product.details = [
            ProductDetail(label=d.label, value=d.value, sort_order=d.sort_order)
            for d in data.details
        ]


def create_product(session: Session, data: ProductCreate) -> Product:
    if not data.images:
        raise HTTPException(400, "At least one product image is required")

    _ensure_category(session, data.category_id)
    _ensure_unique_sku(session, data.sku)

    product = Product(
        name=data.name,
        slug=slugify(data.name),
        description=data.description,
        price=data.price,
        category_id=data.category_id,
        brand=data.brand,
        sku=data.sku or None,
        featured=data.featured,
        delivery_time=data.delivery_time,
        warranty=data.warranty,
        quality=data.quality,
        shipping_fee=data.shipping_fee,
    )
    _replace_collections(product, data)

    session.add(product)
    session.commit()
    session.refresh(product)
    return product


def update_product(session: Session, product: Product, data: ProductUpdate) -> Product:
    changes = data.model_dump(exclude_unset=True, exclude={"sizes", "images", "details"})

    if "category_id" in changes and changes["category_id"] is not None:
        _ensure_category(session, changes["category_id"])
    if changes.get("sku"):
        _ensure_unique_sku(session, changes["sku"], product.id)
    if data.images is not None and not data.images:
        raise HTTPException(400, "At least one product image is required")

    for field, value in changes.items():
        setattr(product, field, value)
    if "name" in changes and changes["name"]:
        product.slug = slugify(changes["name"])

    _replace_collections(product, data)
    product.updated_at = datetime.utcnow()

    session.add(product)
    session.commit()
    session.refresh(product)
    return product
