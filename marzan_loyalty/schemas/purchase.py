from datetime import date, datetime
from typing import Optional

from uuid import UUID

from pydantic import BaseModel

from marzan_loyalty.schemas.reward import RewardOut


class RedeemIn(BaseModel):
    code: str
    purchased_at: date


class PurchaseOut(BaseModel):
    id: UUID
    user_id: UUID
    transaction_id: str
    amount: float
    purchased_at: datetime
    verified: bool

    class Config:
        from_attributes = True


class RedeemOut(BaseModel):
    purchase: PurchaseOut
    reward: Optional[RewardOut] = None
    purchase_count: int
