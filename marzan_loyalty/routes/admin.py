from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from marzan_loyalty.db import get_db
from marzan_loyalty.deps.auth import CurrentSession, require_admin
from marzan_loyalty.deps.services import get_email_backend
from marzan_loyalty.schemas.loyalty_code import (
    LoyaltyCodeCreate,
    LoyaltyCodeIssued,
    LoyaltyCodeOut,
    WhatsAppShareIn,
    WhatsAppShareOut,
)
from marzan_loyalty.schemas.reward import ActiveRewardOut, RewardOut
from marzan_loyalty.schemas.user import UserOut
from marzan_loyalty.services import issuance_service
from marzan_loyalty.services.email_service import EmailBackend
from marzan_loyalty.services.loyalty_code_service import list_codes
from marzan_loyalty.services.profile_service import search_users
from marzan_loyalty.services.reward_service import claim_reward, list_active_rewards


router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


# ─── Loyalty codes ────────────────────────────────────────────────
@router.get("/loyalty-codes", response_model=list[LoyaltyCodeOut])
def admin_list_codes(db: Session = Depends(get_db)):
    return list_codes(db)


@router.post("/loyalty-codes", response_model=LoyaltyCodeIssued, status_code=201)
def admin_issue_code(
    payload: LoyaltyCodeCreate,
    session: CurrentSession = Depends(require_admin),
    db: Session = Depends(get_db),
    email_backend: EmailBackend = Depends(get_email_backend),
):
    result = issuance_service.generate_and_dispatch(
        db,
        payload.email,
        email_backend=email_backend,
        created_by=session.user_id,
    )
    db.commit()
    db.refresh(result.loyalty_code)
    return {"loyalty_code": result.loyalty_code, "email_sent": result.email_sent}


@router.post("/loyalty-codes/{code_id}/resend", response_model=LoyaltyCodeIssued)
def admin_resend_code(
    code_id: UUID,
    db: Session = Depends(get_db),
    email_backend: EmailBackend = Depends(get_email_backend),
):
    result = issuance_service.resend_code_email(db, code_id, email_backend=email_backend)
    return {"loyalty_code": result.loyalty_code, "email_sent": result.email_sent}


@router.post("/loyalty-codes/{code_id}/whatsapp", response_model=WhatsAppShareOut)
def admin_whatsapp_link(
    code_id: UUID,
    payload: WhatsAppShareIn,
    db: Session = Depends(get_db),
):
    return {"url": issuance_service.whatsapp_share_link(db, code_id, payload.phone)}


# ─── Rewards ──────────────────────────────────────────────────────
@router.get("/rewards/active", response_model=list[ActiveRewardOut])
def admin_active_rewards(db: Session = Depends(get_db)):
    return [
        {
            "id": reward.id,
            "user_id": reward.user_id,
            "reward_type": reward.reward_type,
            "created_at": reward.created_at,
            "expiry_date": reward.expiry_date,
            "claimed_at": reward.claimed_at,
            "user_email": user.email,
            "user_name": user.full_name,
        }
        for reward, user in list_active_rewards(db)
    ]


@router.post("/rewards/{reward_id}/claim", response_model=RewardOut)
def admin_claim_reward(reward_id: UUID, db: Session = Depends(get_db)):
    reward = claim_reward(db, reward_id)
    db.commit()
    db.refresh(reward)
    return reward


# ─── Users ────────────────────────────────────────────────────────
@router.get("/users", response_model=list[UserOut])
def admin_search_users(q: str | None = None, db: Session = Depends(get_db)):
    return search_users(db, q)
