import re

from marzan_loyalty.errors import ValidationError


EMAIL_RE = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")

MIN_PASSWORD_LENGTH = 6


def normalize_email(value: str | None) -> str:
    v = (value or "").strip().lower()
    if not v or not EMAIL_RE.match(v):
        raise ValidationError("A valid email is required")
    return v


def normalize_phone(value: str | None, *, required: bool = False) -> str | None:
    digits = re.sub(r"\D", "", value or "")
    if not digits:
        if required:
            raise ValidationError("Phone is required")
        return None
    # 10-11 national digits, optionally prefixed by the 55 country code
    if not 10 <= len(digits) <= 13:
        raise ValidationError("Phone must have between 10 and 13 digits")
    return digits


def validate_password(value: str | None) -> str:
    if not value or len(value) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must have at least {MIN_PASSWORD_LENGTH} characters")
    return value


def require_text(value: str | None, field: str) -> str:
    v = (value or "").strip()
    if not v:
        raise ValidationError(f"{field} is required")
    return v
