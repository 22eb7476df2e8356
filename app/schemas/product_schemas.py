from pydantic import BaseModel, Field
from typing import List, Optional

from app.models.product_image import ImageViewType


class ProductImageIn(BaseModel):
    url: str = Field(min_length=1)
    view_type: ImageViewType = ImageViewType.GENERAL
    alt: Optional[str] = None
    sort_order: int = Field(default=0, ge=0)


class ProductDetailIn(BaseModel):
    label: str = Field(min_length=1)
    value: str = Field(min_length=1)
    sort_order: int = Field(default=0, ge=0)


class ProductSizeIn(BaseModel):
    size: str = Field(min_length=1)
    stock: int = Field(ge=0)


class ProductCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    price: float = Field(gt=0)
    category_id: int
    brand: Optional[str] = None
    sku: Optional[str] = None
    featured: bool = False
    delivery_time: Optional[str] = None
    warranty: Optional[str] = None
    quality: Optional[str] = None
    shipping_fee: Optional[float] = Field(default=None, ge=0)
    sizes: List[ProductSizeIn] = []
    images: List[ProductImageIn] = []
    details: List[ProductDetailIn] = []


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, gt=0)
    category_id: Optional[int] = None
    brand: Optional[str] = None
    sku: Optional[str] = None
    featured: Optional[bool] = None
    delivery_time: Optional[str] = None
    warranty: Optional[str] = None
    quality: Optional[str] = None
    shipping_fee: Optional[float] = Field(default=None, ge=0)
    # when given, replace the product's collections wholesale
    sizes: Optional[List[ProductSizeIn]] = None
    images: Optional[List[ProductImageIn]] = None
    details: Optional[List[ProductDetailIn]] = None


class StockUpdate(BaseModel):
    stock: int = Field(ge=0)
