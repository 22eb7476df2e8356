from enum import Enum
from sqlmodel import SQLModel, Field
from typing import Optional


class ImageViewType(str, Enum):
    FRONT = "FRONT"
    SIDE = "SIDE"
    TOP = "TOP"
    BACK = "BACK"
    GENERAL = "GENERAL"


class ProductImage(SQLModel, table=True):
    __tablename__ = "product_image"

    id: Optional[int] = Field(default=None, primary_key=True)
    product_id: int = Field(foreign_key="product.id", index=True)
    url: str
    view_type: str = Field(default=ImageViewType.GENERAL.value)
    alt: str = ""
    sort_order: int = 0


class ProductDetail(SQLModel, table=True):
    __tablename__ = "product_detail"

    id: Optional[int] = Field(default=None, primary_key=True)
    product_id: int = Field(foreign_key="product.id", index=True)
    label: str
    value: str
    sort_order: int = 0
