from typing import Optional

from pydantic import BaseModel

from marzan_loyalty.schemas.loyalty_code import UsedCodeOut
from marzan_loyalty.schemas.purchase import PurchaseOut
from marzan_loyalty.schemas.reward import RewardOut


class ProgressOut(BaseModel):
    purchase_count: int
    threshold: int
    progress: int
    remaining: int


class LoyaltySummaryOut(BaseModel):
    progress: ProgressOut
    # pending | available | expired | claimed
    reward_status: str
    active_reward: Optional[RewardOut] = None
    recent_purchases: list[PurchaseOut]
    used_codes: list[UsedCodeOut]
