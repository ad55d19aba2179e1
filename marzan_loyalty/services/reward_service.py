import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from marzan_loyalty import config
from marzan_loyalty.errors import NotFoundError
from marzan_loyalty.models.reward import Reward
from marzan_loyalty.models.user import User
from marzan_loyalty.services.purchase_service import count_for_user
from marzan_loyalty.timeutils import add_months, utcnow


logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_AVAILABLE = "available"
STATUS_EXPIRED = "expired"
STATUS_CLAIMED = "claimed"


def get_active_reward(db: Session, user_id):
    return (
        db.query(Reward)
        .filter(Reward.user_id == user_id, Reward.claimed_at.is_(None))
        .first()
    )


def list_for_user(db: Session, user_id):
    return (
        db.query(Reward)
        .filter(Reward.user_id == user_id)
        .order_by(Reward.created_at.desc())
        .all()
    )


def list_active_rewards(db: Session):
    """Unclaimed rewards with their owner, newest first (admin view)."""
    return (
        db.query(Reward, User)
        .join(User, User.id == Reward.user_id)
        .filter(Reward.claimed_at.is_(None))
        .order_by(Reward.created_at.desc())
        .all()
    )


# ============================================================
# ISSUE (called right after a purchase is appended)
# ============================================================
def maybe_issue_reward(db: Session, user_id, *, now: datetime | None = None):
    """
    Create a reward when the purchase count lands on a multiple of the
    threshold and the user holds no unclaimed reward. Returns the new reward
    or None.
    """

    # serialize concurrent redemptions of the same user
    db.query(User.id).filter(User.id == user_id).with_for_update().first()

    purchase_count = count_for_user(db, user_id)
    threshold = config.REWARD_THRESHOLD

    if purchase_count == 0 or purchase_count % threshold != 0:
        return None

    active = get_active_reward(db, user_id)
    if active:
        logger.info(
            "reward threshold reached but an active reward exists",
            extra={"user_id": str(user_id), "purchase_count": purchase_count, "reward_id": str(active.id)},
        )
        return None

    now = now or utcnow()
    reward = Reward(
        user_id=user_id,
        reward_type=config.REWARD_TYPE,
        created_at=now,
        expiry_date=add_months(now, config.REWARD_VALIDITY_MONTHS),
    )
    try:
        # savepoint: losing the race must not undo the purchase
        with db.begin_nested():
            db.add(reward)
    except IntegrityError:
        logger.warning(
            "concurrent reward issue detected; keeping the existing reward",
            extra={"user_id": str(user_id), "purchase_count": purchase_count},
        )
        return None

    logger.info(
        "reward issued",
        extra={
            "user_id": str(user_id),
            "reward_id": str(reward.id),
            "purchase_count": purchase_count,
            "expiry_date": reward.expiry_date.isoformat(),
        },
    )
    return reward


# ============================================================
# CLAIM (admin, idempotent)
# ============================================================
def claim_reward(db: Session, reward_id, *, now: datetime | None = None) -> Reward:
    reward = db.query(Reward).filter(Reward.id == reward_id).first()
    if not reward:
        raise NotFoundError("Reward not found")

    if reward.claimed_at is not None:
        logger.info("reward already claimed", extra={"reward_id": str(reward.id)})
        return reward

    updated = (
        db.query(Reward)
        .filter(Reward.id == reward.id, Reward.claimed_at.is_(None))
        .update({Reward.claimed_at: now or utcnow()}, synchronize_session=False)
    )
    db.refresh(reward)

    if updated:
        logger.info(
            "reward claimed",
            extra={"reward_id": str(reward.id), "user_id": str(reward.user_id)},
        )
    return reward


# ============================================================
# STATUS / PROGRESS
# ============================================================
def compute_reward_status(rewards, *, now: datetime | None = None) -> str:
    if not rewards:
        return STATUS_PENDING

    active = next((r for r in rewards if r.claimed_at is None), None)
    if active is None:
        return STATUS_CLAIMED

    now = now or utcnow()
    if active.expiry_date is not None and active.expiry_date < now:
        return STATUS_EXPIRED
    return STATUS_AVAILABLE


def get_reward_status(db: Session, user_id, *, now: datetime | None = None) -> str:
    return compute_reward_status(list_for_user(db, user_id), now=now)


def get_progress(db: Session, user_id) -> dict:
    purchase_count = count_for_user(db, user_id)
    threshold = config.REWARD_THRESHOLD
    progress = purchase_count % threshold
    return {
        "purchase_count": purchase_count,
        "threshold": threshold,
        "progress": progress,
        "remaining": threshold - progress,
    }
