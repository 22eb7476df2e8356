from sqlmodel import SQLModel, Field


class ProductSize(SQLModel, table=True):
    """Stock counter for one size of one product."""
    __tablename__ = "product_size"

    product_id: int = Field(foreign_key="product.id", primary_key=True)
    size: str = Field(primary_key=True)
    stock: int = Field(default=0)
