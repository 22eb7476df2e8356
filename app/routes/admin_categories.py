import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from slugify import slugify
from sqlmodel import Session, func, select

from app.database import get_session
from app.dependencies.admin import require_admin
from app.models.category import Category
from app.models.product import Product
from app.models.user import User
from app.schemas.category_schemas import CategoryCreate, CategoryUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


def _check_parent(session: Session, parent_id, category_id=None):
    if parent_id is None:
        return
    if parent_id == category_id:
        raise HTTPException(400, "A category cannot be its own parent")

    parent = session.get(Category, parent_id)
    if not parent:
        raise HTTPException(400, "Parent category not found")

    # walk up so a category never ends up below one of its descendants
    ancestor = parent
    while ancestor is not None and category_id is not None:
        if ancestor.parent_id == category_id:
            raise HTTPException(400, "A category cannot be moved below its own subcategory")
        ancestor = session.get(Category, ancestor.parent_id) if ancestor.parent_id else None


@router.post("", status_code=status.HTTP_201_CREATED)
def create_category(
    data: CategoryCreate,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin)
):
    existing = session.exec(select(Category).where(Category.name == data.name)).first()
    if existing:
        raise HTTPException(400, "Category already exists")

    _check_parent(session, data.parent_id)

    category = Category(
        name=data.name,
        slug=slugify(data.name),
        description=data.description,
        image=data.image,
        parent_id=data.parent_id,
    )
    session.add(category)
    session.commit()
    session.refresh(category)

    return category


@router.put("/{category_id}")
def update_category(
    category_id: int,
    data: CategoryUpdate,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin)
):
    category = session.get(Category, category_id)
    if not category:
        raise HTTPException(404, "Category not found")

    changes = data.model_dump(exclude_unset=True)

    if changes.get("name") and changes["name"] != category.name:
        clash = session.exec(select(Category).where(Category.name == changes["name"])).first()
        if clash:
            raise HTTPException(400, "Category already exists")
        category.name = changes["name"]
        category.slug = slugify(changes["name"])

    if "parent_id" in changes:
        _check_parent(session, changes["parent_id"], category.id)
        category.parent_id = changes["parent_id"]

    if "description" in changes:
        category.description = changes["description"]
    if "image" in changes:
        category.image = changes["image"]

    category.updated_at = datetime.utcnow()

    session.add(category)
    session.commit()
    session.refresh(category)

    return category


@router.delete("/{category_id}")
def delete_category(
    category_id: int,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin)
):
    category = session.get(Category, category_id)
    if not category:
        raise HTTPException(404, "Category not found")

    children = session.exec(
        select(func.count(Category.id)).where(Category.parent_id == category_id)
    ).one()
    products = session.exec(
        select(func.count(Product.id)).where(Product.category_id == category_id)
    ).one()

    if children or products:
        raise HTTPException(
            400,
            f"Cannot delete category with {children} subcategories and {products} products. "
            "Move or delete them first.",
        )

    session.delete(category)
    session.commit()
    logger.info(f"Category {category_id} deleted")

    return {"message": "Category deleted"}
