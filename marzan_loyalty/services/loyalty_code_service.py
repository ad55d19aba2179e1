import logging
import secrets
import string
from dataclasses import dataclass
from datetime import date, datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from marzan_loyalty import config
from marzan_loyalty.errors import (
    CodeAlreadyUsed,
    CodeEmailMismatch,
    CodeGenerationError,
    CodeNotFound,
    ValidationError,
)
from marzan_loyalty.models.loyalty_code import LoyaltyCode
from marzan_loyalty.models.purchase import Purchase
from marzan_loyalty.models.reward import Reward
from marzan_loyalty.services.purchase_service import record_purchase
from marzan_loyalty.services.reward_service import maybe_issue_reward
from marzan_loyalty.services.validators import normalize_email
from marzan_loyalty.timeutils import utcnow


logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits


@dataclass
class RedemptionResult:
    purchase: Purchase
    reward: Reward | None = None


def generate_code(length: int | None = None) -> str:
    length = length or config.LOYALTY_CODE_LENGTH
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def normalize_code(code: str | None) -> str:
    v = (code or "").strip().upper()
    if not v:
        raise ValidationError("Loyalty code is required")
    return v


def get_code(db: Session, code_id):
    return db.query(LoyaltyCode).filter(LoyaltyCode.id == code_id).first()


def list_codes(db: Session):
    return db.query(LoyaltyCode).order_by(LoyaltyCode.created_at.desc()).all()


def list_used_by(db: Session, user_id):
    return (
        db.query(LoyaltyCode)
        .filter(LoyaltyCode.used_by == user_id)
        .order_by(LoyaltyCode.used_at.desc())
        .all()
    )


# ============================================================
# ISSUE
# ============================================================
def issue_code(
    db: Session,
    email: str,
    *,
    created_by=None,
    now: datetime | None = None,
    generate=generate_code,
) -> LoyaltyCode:
    email = normalize_email(email)
    max_attempts = config.LOYALTY_CODE_MAX_ATTEMPTS

    for attempt in range(1, max_attempts + 1):
        candidate = normalize_code(generate())

        taken = db.query(LoyaltyCode.id).filter(LoyaltyCode.code == candidate).first()
        if taken:
            logger.warning(
                "loyalty code collision; retrying",
                extra={"attempt": attempt, "max_attempts": max_attempts},
            )
            continue

        loyalty_code = LoyaltyCode(
            code=candidate,
            email=email,
            created_by=created_by,
            created_at=now or utcnow(),
        )
        db.add(loyalty_code)
        try:
            db.flush()
        except IntegrityError as e:
            # lost a race on the unique constraint
            raise CodeGenerationError() from e

        logger.info(
            "loyalty code issued",
            extra={"code_id": str(loyalty_code.id), "email": email, "created_by": str(created_by)},
        )
        return loyalty_code

    logger.error("loyalty code generation exhausted retries", extra={"max_attempts": max_attempts})
    raise CodeGenerationError()


# ============================================================
# REDEEM
# ============================================================
def redeem_code(
    db: Session,
    *,
    code: str,
    user_id,
    email: str,
    purchased_at: date | datetime,
    now: datetime | None = None,
) -> RedemptionResult:
    """
    Consume a code for the requesting user: mark it used, append the
    purchase and run the reward check. All writes share the caller's
    transaction; nothing is persisted unless the caller commits.
    """
    normalized = normalize_code(code)

    loyalty_code = (
        db.query(LoyaltyCode)
        .filter(LoyaltyCode.code == normalized)
        .with_for_update()
        .first()
    )

    if not loyalty_code:
        logger.info("redemption refused", extra={"reason": "not_found", "user_id": str(user_id)})
        raise CodeNotFound()

    if loyalty_code.used_at is not None:
        logger.info(
            "redemption refused",
            extra={"reason": "already_used", "code_id": str(loyalty_code.id), "user_id": str(user_id)},
        )
        raise CodeAlreadyUsed()

    if loyalty_code.email.lower() != (email or "").strip().lower():
        logger.info(
            "redemption refused",
            extra={"reason": "email_mismatch", "code_id": str(loyalty_code.id), "user_id": str(user_id)},
        )
        raise CodeEmailMismatch()

    now = now or utcnow()

    # guard against a concurrent redemption that slipped past the read above
    updated = (
        db.query(LoyaltyCode)
        .filter(LoyaltyCode.id == loyalty_code.id, LoyaltyCode.used_at.is_(None))
        .update({LoyaltyCode.used_at: now, LoyaltyCode.used_by: user_id}, synchronize_session=False)
    )
    if updated != 1:
        raise CodeAlreadyUsed()
    db.refresh(loyalty_code)

    try:
        purchase = record_purchase(
            db,
            user_id=user_id,
            transaction_id=normalized,
            purchased_at=purchased_at,
            amount=0,
            verified=True,
        )
    except IntegrityError as e:
        raise CodeAlreadyUsed() from e

    reward = maybe_issue_reward(db, user_id, now=now)

    logger.info(
        "loyalty code redeemed",
        extra={
            "code_id": str(loyalty_code.id),
            "user_id": str(user_id),
            "purchase_id": str(purchase.id),
            "reward_issued": reward is not None,
        },
    )
    return RedemptionResult(purchase=purchase, reward=reward)
