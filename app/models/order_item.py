from sqlmodel import SQLModel, Field , Relationship
from typing import Optional , TYPE_CHECKING

if TYPE_CHECKING:
    from app.models.order import Order

class OrderItem(SQLModel, table=True):
    __tablename__ = "order_item"

    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="order.id", index=True)
    product_id: int = Field(foreign_key="product.id")

    # snapshot at purchase time
    product_name: str
    size: str
    price: float
    quantity: int

    order: Optional["Order"] = Relationship(back_populates="items")

    @property
    def line_total(self) -> float:
        return self.price * self.quantity
