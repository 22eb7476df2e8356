from pydantic import BaseModel, Field
from typing import Optional

class AddressCreate(BaseModel):
    label: Optional[str] = None
    full_name: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    address_line1: str = Field(min_length=1)
    address_line2: Optional[str] = None
    city: str = Field(min_length=1)
    postal_code: Optional[str] = None
    is_default: bool = False

class AddressUpdate(BaseModel):
    label: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
