import logging

from sqlalchemy.orm import Session

from marzan_loyalty.models.user import User
from marzan_loyalty.services.address_service import (
    ADDRESS_FIELDS,
    format_address,
    merge_legacy_address,
    normalize_cep,
    normalize_state,
)
from marzan_loyalty.services.validators import normalize_phone, require_text


logger = logging.getLogger(__name__)


def profile_view(user: User) -> dict:
    """Profile as shown to its owner, with address fields recovered from the
    legacy string when no structured field was ever stored."""
    fields = {k: getattr(user, k) for k in ADDRESS_FIELDS}
    fields = merge_legacy_address(fields, user.address)
    return {
        "id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "phone": user.phone,
        "is_admin": bool(user.is_admin),
        "address": user.address,
        "unparsed_address": fields.pop("unparsed_address", None),
        "created_at": user.created_at,
        **fields,
    }


def update_profile(db: Session, user: User, data: dict) -> User:
    """Apply a partial profile update and rebuild the legacy address."""
    if "full_name" in data:
        user.full_name = require_text(data["full_name"], "Full name")
    if "phone" in data:
        user.phone = normalize_phone(data["phone"], required=True)

    address_touched = False
    for key in ADDRESS_FIELDS:
        if key not in data:
            continue
        value = data[key]
        if key == "cep":
            value = normalize_cep(value)
        elif key == "state":
            value = normalize_state(value)
        else:
            value = (value or "").strip() or None
        setattr(user, key, value)
        address_touched = True

    if address_touched:
        user.address = format_address(user) or None

    db.flush()
    logger.info("profile updated", extra={"user_id": str(user.id), "address_touched": address_touched})
    return user


def search_users(db: Session, q: str | None = None):
    query = db.query(User)
    if q:
        like = f"%{q.strip().lower()}%"
        query = query.filter(User.email.ilike(like) | User.full_name.ilike(like))
    return query.order_by(User.created_at.desc()).all()
