from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select
from app.database import get_session
from app.models.category import Category
from app.services.catalog_service import category_tree, product_counts_by_category

router = APIRouter()


@router.get("")
def list_categories(session: Session = Depends(get_session)):
    categories = session.exec(select(Category).order_by(Category.name)).all()
    return {"categories": category_tree(categories, product_counts_by_category(session))}


@router.get("/{slug}")
def get_category(slug: str, session: Session = Depends(get_session)):
    category = session.exec(select(Category).where(Category.slug == slug)).first()
    if not category:
        raise HTTPException(404, "Category not found")

    children = session.exec(
        select(Category).where(Category.parent_id == category.id).order_by(Category.name)
    ).all()

    return {
        "id": category.id,
        "name": category.name,
        "slug": category.slug,
        "description": category.description,
        "image": category.image,
        "parent_id": category.parent_id,
        "children": [{"id": c.id, "name": c.name, "slug": c.slug} for c in children],
    }
