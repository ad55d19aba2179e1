from datetime import date, datetime, time
from decimal import Decimal

from sqlalchemy import extract, func
from sqlalchemy.orm import Session

from marzan_loyalty.errors import ValidationError
from marzan_loyalty.models.purchase import Purchase
from marzan_loyalty.timeutils import local_today


PERIODS = ("all", "month", "year")


def as_purchase_datetime(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    return datetime.combine(value, time.min)


def count_for_user(db: Session, user_id) -> int:
    count = (
        db.query(func.count(Purchase.id))
        .filter(Purchase.user_id == user_id)
        .scalar()
    )
    return int(count or 0)


def list_for_user(
    db: Session,
    user_id,
    *,
    period: str = "all",
    today: date | None = None,
    limit: int | None = None,
):
    """Purchases newest first; ``month``/``year`` compare calendar fields."""
    if period not in PERIODS:
        raise ValidationError(f"period must be one of: {', '.join(PERIODS)}")

    q = db.query(Purchase).filter(Purchase.user_id == user_id)

    if period != "all":
        today = today or local_today()
        q = q.filter(extract("year", Purchase.purchased_at) == today.year)
        if period == "month":
            q = q.filter(extract("month", Purchase.purchased_at) == today.month)

    q = q.order_by(Purchase.purchased_at.desc())
    if limit is not None:
        q = q.limit(max(1, limit))
    return q.all()


def recent_for_user(db: Session, user_id, limit: int = 3):
    return list_for_user(db, user_id, limit=limit)


def record_purchase(
    db: Session,
    *,
    user_id,
    transaction_id: str,
    purchased_at: date | datetime,
    amount: Decimal | int = 0,
    verified: bool = True,
) -> Purchase:
    purchase = Purchase(
        user_id=user_id,
        transaction_id=transaction_id,
        amount=amount,
        purchased_at=as_purchase_datetime(purchased_at),
        verified=verified,
    )
    db.add(purchase)
    db.flush()
    return purchase
