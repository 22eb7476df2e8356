from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from app.database import get_session
from app.dependencies.admin import require_action
from app.dependencies.policy import Action
from app.models.product import Product
from app.models.review import ProductReview
from app.models.user import User
from app.utils.pagination import paginate

router = APIRouter()

require_moderator = require_action(Action.MODERATE_REVIEWS)


@router.get("")
def list_reviews_admin(
    page: int = 1,
    limit: int = 20,
    rating: Optional[int] = None,
    session: Session = Depends(get_session),
    _: User = Depends(require_moderator),
):
    query = (
        select(ProductReview, User, Product)
        .join(User, User.id == ProductReview.user_id)
        .join(Product, Product.id == ProductReview.product_id)
    )
    if rating:
        query = query.where(ProductReview.rating == rating)

    query = query.order_by(ProductReview.created_at.desc())

    return paginate(
        session=session,
        query=query,
        page=page,
        limit=limit,
        serialize=lambda row: {
            "id": row[0].id,
            "rating": row[0].rating,
            "comment": row[0].comment,
            "created_at": row[0].created_at,
            "user_name": row[1].name,
            "user_email": row[1].email,
            "product_id": row[2].id,
            "product_name": row[2].name,
        },
    )


@router.delete("/{review_id}")
def delete_review_admin(
    review_id: int,
    session: Session = Depends(get_session),
    _: User = Depends(require_moderator),
):
    review = session.get(ProductReview, review_id)
    if not review:
        raise HTTPException(404, "Review not found")

    session.delete(review)
    session.commit()

    return {"message": "Review deleted"}
