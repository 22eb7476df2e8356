from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, or_, select

from app.database import get_session
from app.models.category import Category
from app.models.product import Product
from app.models.product_size import ProductSize
from app.models.recently_viewed import RecentlyViewed
from app.models.review import ProductReview
from app.models.user import User
from app.schemas.review_schemas import ReviewCreate
from app.services.catalog_service import (
    rating_summary,
    serialize_product,
    serialize_product_card,
)
from app.utils.pagination import paginate
from app.utils.token import get_current_user

router = APIRouter()


@router.get("")
def list_products(
    page: int = 1,
    limit: int = 12,
    q: Optional[str] = None,
    category: Optional[str] = None,
    price_min: Optional[float] = None,
    price_max: Optional[float] = None,
    size: Optional[str] = None,
    featured: Optional[bool] = None,
    sort: str = Query("newest", pattern="^(newest|price_asc|price_desc|name)$"),
    session: Session = Depends(get_session),
):
    query = select(Product)

    if q:
        like = f"%{q}%"
        query = query.where(
            or_(
                Product.name.ilike(like),
                Product.description.ilike(like),
                Product.brand.ilike(like),
            )
        )

    if category:
        category_obj = session.exec(select(Category).where(Category.slug == category)).first()
        if not category_obj:
            raise HTTPException(404, f"Category '{category}' not found")
        # a parent category lists its subcategories' products too
        ids = [category_obj.id] + session.exec(
            select(Category.id).where(Category.parent_id == category_obj.id)
        ).all()
        query = query.where(Product.category_id.in_(ids))

    if price_min is not None:
        query = query.where(Product.price >= price_min)

    if price_max is not None:
        query = query.where(Product.price <= price_max)

    if featured is not None:
        query = query.where(Product.featured == featured)

    if size:
        in_size = select(ProductSize.product_id).where(
            ProductSize.size == size, ProductSize.stock > 0
        )
        query = query.where(Product.id.in_(in_size))

    ordering = {
        "newest": (Product.created_at.desc(), Product.id.desc()),
        "price_asc": (Product.price.asc(),),
        "price_desc": (Product.price.desc(),),
        "name": (Product.name.asc(),),
    }[sort]
    query = query.order_by(*ordering)

    return paginate(
        session=session,
        query=query,
        page=page,
        limit=limit,
        serialize=serialize_product_card,
    )


@router.get("/filters")
def product_filters(session: Session = Depends(get_session)):
    sizes = session.exec(select(ProductSize.size).distinct().order_by(ProductSize.size)).all()
    brands = session.exec(
        select(Product.brand).where(Product.brand.is_not(None)).distinct().order_by(Product.brand)
    ).all()
    prices = session.exec(select(Product.price)).all()

    return {
        "sizes": sizes,
        "brands": brands,
        "price_range": {
            "min": min(prices) if prices else 0,
            "max": max(prices) if prices else 0,
        },
    }


@router.get("/shipping")
def shipping_fees(ids: Optional[str] = None, session: Session = Depends(get_session)):
    """Per-product shipping fee for ``?ids=1,2,3``; unknown ids are left out."""
    if not ids:
        raise HTTPException(400, "Product IDs are required")

    try:
        product_ids = [int(part) for part in ids.split(",") if part.strip()]
    except ValueError:
        raise HTTPException(400, "Product IDs must be integers")

    if not product_ids:
        raise HTTPException(400, "At least one product ID is required")

    rows = session.exec(
        select(Product.id, Product.shipping_fee).where(Product.id.in_(product_ids))
    ).all()

    return {"shipping_fees": {str(pid): fee or 0 for pid, fee in rows}}


@router.get("/{product_id}")
def product_detail(product_id: int, session: Session = Depends(get_session)):
    product = session.get(Product, product_id)
    if not product:
        raise HTTPException(404, "Product not found")
    return serialize_product(session, product)


@router.get("/{product_id}/related")
def related_products(
    product_id: int,
    limit: int = Query(4, ge=1, le=20),
    session: Session = Depends(get_session),
):
    product = session.get(Product, product_id)
    if not product:
        raise HTTPException(404, "Product not found")

    related = session.exec(
        select(Product)
        .where(Product.category_id == product.category_id, Product.id != product.id)
        .order_by(Product.featured.desc(), Product.created_at.desc())
        .limit(limit)
    ).all()

    return {"products": [serialize_product_card(p) for p in related]}


@router.post("/{product_id}/viewed")
def mark_viewed(
    product_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    if not session.get(Product, product_id):
        raise HTTPException(404, "Product not found")

    viewed = session.exec(
        select(RecentlyViewed).where(
            RecentlyViewed.user_id == current_user.id,
            RecentlyViewed.product_id == product_id,
        )
    ).first()

    if viewed:
        viewed.viewed_at = datetime.utcnow()
    else:
        viewed = RecentlyViewed(user_id=current_user.id, product_id=product_id)

    session.add(viewed)
    session.commit()

    return {"message": "View recorded"}


# ---------------- REVIEWS ----------------

@router.get("/{product_id}/reviews")
def list_reviews(product_id: int, session: Session = Depends(get_session)):
    if not session.get(Product, product_id):
        raise HTTPException(404, "Product not found")

    rows = session.exec(
        select(ProductReview, User)
        .join(User, User.id == ProductReview.user_id)
        .where(ProductReview.product_id == product_id)
        .order_by(ProductReview.created_at.desc())
    ).all()

    average, count = rating_summary(session, product_id)

    return {
        "average_rating": average,
        "total_reviews": count,
        "reviews": [
            {
                "id": r.id,
                "user_name": u.name,
                "rating": r.rating,
                "comment": r.comment,
                "created_at": r.created_at,
                "updated_at": r.updated_at,
            }
            for r, u in rows
        ],
    }


@router.post("/{product_id}/reviews")
def upsert_review(
    product_id: int,
    data: ReviewCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """One review per user and product; posting again updates it."""
    if not session.get(Product, product_id):
        raise HTTPException(404, "Product not found")

    review = session.exec(
        select(ProductReview).where(
            ProductReview.user_id == current_user.id,
            ProductReview.product_id == product_id,
        )
    ).first()

    if review:
        review.rating = data.rating
        review.comment = data.comment
        review.updated_at = datetime.utcnow()
        message = "Review updated"
    else:
        review = ProductReview(
            user_id=current_user.id,
            product_id=product_id,
            rating=data.rating,
            comment=data.comment,
        )
        message = "Review added"

    session.add(review)
    session.commit()
    session.refresh(review)

    return {"message": message, "review": review}


@router.delete("/{product_id}/reviews")
def delete_my_review(
    product_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    review = session.exec(
        select(ProductReview).where(
            ProductReview.user_id == current_user.id,
            ProductReview.product_id == product_id,
        )
    ).first()

    if not review:
        raise HTTPException(404, "Review not found")

    session.delete(review)
    session.commit()

    return {"message": "Review deleted"}
