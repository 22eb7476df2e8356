from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, TYPE_CHECKING, List
from datetime import datetime

from app.models.product_size import ProductSize
from app.models.product_image import ProductImage, ProductDetail

if TYPE_CHECKING:
    from .category import Category

class Product(SQLModel, table=True):
    #main info
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    slug: str = Field(index=True)
    description: Optional[str] = None
    brand: Optional[str] = None
    sku: Optional[str] = Field(default=None, unique=True)

    #Shop Details
    price: float
    featured: bool = False
    delivery_time: Optional[str] = None
    warranty: Optional[str] = None
    quality: Optional[str] = None
    shipping_fee: Optional[float] = None

    #timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    #category
    category_id: int = Field(foreign_key="category.id", index=True)
    category: Optional["Category"] = Relationship(back_populates="products")

    sizes: List["ProductSize"] = Relationship(
        sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )
    images: List["ProductImage"] = Relationship(
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "order_by": "ProductImage.sort_order",
        }
    )
    details: List["ProductDetail"] = Relationship(
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "order_by": "ProductDetail.sort_order",
        }
    )

    @property
    def total_stock(self) -> int:
        return sum(s.stock for s in self.sizes)

    @property
    def in_stock(self) -> bool:
        return self.total_stock > 0
