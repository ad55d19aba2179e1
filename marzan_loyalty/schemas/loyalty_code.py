from datetime import datetime
from typing import Optional

from uuid import UUID

from pydantic import BaseModel


class LoyaltyCodeCreate(BaseModel):
    email: str


class LoyaltyCodeOut(BaseModel):
    id: UUID
    code: str
    email: str
    created_by: Optional[UUID] = None
    created_at: Optional[datetime] = None
    used_at: Optional[datetime] = None
    used_by: Optional[UUID] = None

    class Config:
        from_attributes = True


class LoyaltyCodeIssued(BaseModel):
    loyalty_code: LoyaltyCodeOut
    email_sent: bool


class UsedCodeOut(BaseModel):
    code: str
    used_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class WhatsAppShareIn(BaseModel):
    phone: str


class WhatsAppShareOut(BaseModel):
    url: str
