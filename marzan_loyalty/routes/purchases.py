from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from marzan_loyalty.db import get_db
from marzan_loyalty.deps.auth import CurrentSession, get_current_session
from marzan_loyalty.schemas.purchase import PurchaseOut, RedeemIn, RedeemOut
from marzan_loyalty.services.loyalty_code_service import redeem_code
from marzan_loyalty.services.purchase_service import count_for_user, list_for_user


router = APIRouter(prefix="/purchases", tags=["purchases"])


@router.post("/redeem", response_model=RedeemOut)
def redeem(
    payload: RedeemIn,
    session: CurrentSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    result = redeem_code(
        db,
        code=payload.code,
        user_id=session.user_id,
        email=session.email,
        purchased_at=payload.purchased_at,
    )
    purchase_count = count_for_user(db, session.user_id)
    db.commit()

    db.refresh(result.purchase)
    if result.reward is not None:
        db.refresh(result.reward)

    return {
        "purchase": result.purchase,
        "reward": result.reward,
        "purchase_count": purchase_count,
    }


@router.get("", response_model=list[PurchaseOut])
def list_purchases(
    period: str = "all",
    session: CurrentSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return list_for_user(db, session.user_id, period=period)
