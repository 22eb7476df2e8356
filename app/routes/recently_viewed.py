from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, select

from app.database import get_session
from app.models.product import Product
from app.models.recently_viewed import RecentlyViewed
from app.models.user import User
from app.services.catalog_service import serialize_product_card
from app.utils.token import get_current_user

router = APIRouter()


@router.get("")
def recently_viewed(
    limit: int = Query(10, ge=1, le=50),
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    rows = session.exec(
        select(RecentlyViewed, Product)
        .join(Product, Product.id == RecentlyViewed.product_id)
        .where(RecentlyViewed.user_id == current_user.id)
        .order_by(RecentlyViewed.viewed_at.desc(), RecentlyViewed.id.desc())
        .limit(limit)
    ).all()

    return {
        "products": [
            {"viewed_at": v.viewed_at, **serialize_product_card(p)} for v, p in rows
        ]
    }
