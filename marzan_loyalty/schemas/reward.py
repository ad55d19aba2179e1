from datetime import datetime
from typing import Optional

from uuid import UUID

from pydantic import BaseModel


class RewardOut(BaseModel):
    id: UUID
    user_id: UUID
    reward_type: str

    created_at: Optional[datetime] = None
    expiry_date: Optional[datetime] = None
    claimed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ActiveRewardOut(RewardOut):
    user_email: Optional[str] = None
    user_name: Optional[str] = None
