from datetime import datetime
from typing import Optional

from uuid import UUID

from pydantic import BaseModel, Field


class UserOut(BaseModel):
    id: UUID
    email: str
    full_name: str
    phone: Optional[str] = None
    is_admin: bool
    email_confirmed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileOut(BaseModel):
    id: UUID
    email: str
    full_name: str
    phone: Optional[str] = None
    is_admin: bool

    cep: Optional[str] = None
    street: Optional[str] = None
    number: Optional[str] = None
    complement: Optional[str] = None
    neighborhood: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None

    address: Optional[str] = None
    # legacy address text that could not be mapped to any field
    unparsed_address: Optional[str] = None

    created_at: Optional[datetime] = None


class ProfileUpdate(BaseModel):
    # column widths; phone, cep and state are normalized before they are stored
    full_name: Optional[str] = Field(default=None, max_length=120)
    phone: Optional[str] = Field(default=None, max_length=30)

    cep: Optional[str] = Field(default=None, max_length=20)
    street: Optional[str] = Field(default=None, max_length=255)
    number: Optional[str] = Field(default=None, max_length=30)
    complement: Optional[str] = Field(default=None, max_length=120)
    neighborhood: Optional[str] = Field(default=None, max_length=120)
    city: Optional[str] = Field(default=None, max_length=120)
    state: Optional[str] = Field(default=None, max_length=20)


class PostalAddressOut(BaseModel):
    cep: str
    street: str
    neighborhood: str
    city: str
    state: str
