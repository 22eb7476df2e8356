from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select
from app.database import get_session
from app.models.wishlist import WishlistItem
from app.models.product import Product
from app.models.user import User
from app.services.catalog_service import serialize_product_card
from app.utils.token import get_current_user

router = APIRouter()


@router.post("/{product_id}")
def add_to_wishlist(
    product_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    if not session.get(Product, product_id):
        raise HTTPException(404, "Product not found")

    existing = session.exec(
        select(WishlistItem)
        .where(WishlistItem.user_id == current_user.id, WishlistItem.product_id == product_id)
    ).first()

    if existing:
        return {"message": "Already in wishlist"}

    session.add(WishlistItem(user_id=current_user.id, product_id=product_id))
    try:
        session.commit()
    except IntegrityError:
        # double click: the other request added it
        session.rollback()
        return {"message": "Already in wishlist"}

    return {"message": "Added to wishlist"}


@router.delete("/{product_id}")
def remove_from_wishlist(
    product_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    item = session.exec(
        select(WishlistItem)
        .where(WishlistItem.user_id == current_user.id, WishlistItem.product_id == product_id)
    ).first()

    if not item:
        raise HTTPException(404, "Wishlist item not found")

    session.delete(item)
    session.commit()

    return {"message": "Removed from wishlist"}


@router.get("")
def get_wishlist(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    rows = session.exec(
        select(WishlistItem, Product)
        .join(Product, Product.id == WishlistItem.product_id)
        .where(WishlistItem.user_id == current_user.id)
        .order_by(WishlistItem.created_at.desc())
    ).all()

    return {
        "items": [
            {"wishlist_id": w.id, "added_at": w.created_at, "product": serialize_product_card(p)}
            for w, p in rows
        ]
    }


@router.get("/check/{product_id}")
def check_wishlist(
    product_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    item = session.exec(
        select(WishlistItem.id)
        .where(WishlistItem.user_id == current_user.id, WishlistItem.product_id == product_id)
    ).first()

    return {"in_wishlist": item is not None}
