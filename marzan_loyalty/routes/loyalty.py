from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from marzan_loyalty.db import get_db
from marzan_loyalty.deps.auth import CurrentSession, get_current_session
from marzan_loyalty.schemas.loyalty import LoyaltySummaryOut
from marzan_loyalty.schemas.reward import RewardOut
from marzan_loyalty.services import reward_service
from marzan_loyalty.services.loyalty_code_service import list_used_by
from marzan_loyalty.services.purchase_service import recent_for_user
from marzan_loyalty.timeutils import utcnow


router = APIRouter(prefix="/loyalty", tags=["loyalty"])


@router.get("", response_model=LoyaltySummaryOut)
def loyalty_summary(
    session: CurrentSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    user_id = session.user_id
    rewards = reward_service.list_for_user(db, user_id)

    return {
        "progress": reward_service.get_progress(db, user_id),
        "reward_status": reward_service.compute_reward_status(rewards, now=utcnow()),
        "active_reward": next((r for r in rewards if r.claimed_at is None), None),
        "recent_purchases": recent_for_user(db, user_id),
        "used_codes": list_used_by(db, user_id),
    }


@router.get("/rewards", response_model=list[RewardOut])
def list_my_rewards(
    session: CurrentSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return reward_service.list_for_user(db, session.user_id)
