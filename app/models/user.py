from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

ROLE_ADMIN = "admin"
ROLE_USER = "user"


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: str = Field(index=True, unique=True)
    phone: Optional[str] = None
    role: str = Field(default=ROLE_USER)
    can_login: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN
