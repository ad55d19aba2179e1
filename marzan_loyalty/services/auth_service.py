import logging
from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from marzan_loyalty import config
from marzan_loyalty.errors import AuthError, ConflictError
from marzan_loyalty.models.user import User
from marzan_loyalty.services.email_service import (
    EmailBackend,
    build_confirmation_email,
    build_password_reset_email,
    send_best_effort,
)
from marzan_loyalty.services.validators import (
    normalize_email,
    normalize_phone,
    require_text,
    validate_password,
)
from marzan_loyalty.timeutils import utcnow


logger = logging.getLogger(__name__)

pwd_ctx = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

PURPOSE_ACCESS = "access"
PURPOSE_RESET = "reset"
PURPOSE_CONFIRM = "confirm"


def hash_password(password: str) -> str:
    return pwd_ctx.hash(password)


def verify_password(password: str, hash_: str) -> bool:
    return pwd_ctx.verify(password, hash_)


# ============================================================
# TOKENS
# ============================================================
def _hash_fingerprint(user: User) -> str:
    # reset tokens die once the password they were issued for changes
    return (user.password_hash or "")[-16:]


def create_token(user: User, *, purpose: str = PURPOSE_ACCESS, expires_delta: timedelta | None = None) -> str:
    if expires_delta is None:
        expires_delta = timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "purpose": purpose,
        "adm": bool(user.is_admin),
        "iat": now,
        "exp": now + expires_delta,
    }
    if purpose == PURPOSE_RESET:
        payload["pwh"] = _hash_fingerprint(user)
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_token(token: str, *, purpose: str = PURPOSE_ACCESS) -> dict:
    try:
        payload = jwt.decode(token, config.JWT_SECRET_KEY, algorithms=[config.JWT_ALGORITHM])
    except jwt.PyJWTError:
        raise AuthError("Invalid or expired token")
    if payload.get("purpose") != purpose or not payload.get("sub"):
        raise AuthError("Invalid or expired token")
    return payload


def _user_from_token(db: Session, token: str, *, purpose: str) -> tuple[User, dict]:
    payload = decode_token(token, purpose=purpose)
    try:
        user_id = UUID(payload["sub"])
    except ValueError:
        raise AuthError("Invalid or expired token")
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise AuthError("User not found")
    return user, payload


def get_user_from_access_token(db: Session, token: str) -> User:
    user, _ = _user_from_token(db, token, purpose=PURPOSE_ACCESS)
    return user


def get_user_by_email(db: Session, email: str):
    return db.query(User).filter(User.email == (email or "").strip().lower()).first()


# ============================================================
# SIGN UP / SIGN IN
# ============================================================
def sign_up(
    db: Session,
    *,
    email: str,
    password: str,
    full_name: str,
    phone: str | None,
    email_backend: EmailBackend | None = None,
) -> User:
    email = normalize_email(email)
    validate_password(password)
    full_name = require_text(full_name, "Full name")
    phone = normalize_phone(phone, required=True)

    if get_user_by_email(db, email):
        raise ConflictError("Email already registered")

    user = User(
        email=email,
        password_hash=hash_password(password),
        full_name=full_name,
        phone=phone,
        is_admin=False,
    )
    db.add(user)
    db.flush()

    logger.info("user signed up", extra={"user_id": str(user.id), "email": email})

    if email_backend is not None:
        send_confirmation(user, email_backend=email_backend)
    return user


def sign_in(db: Session, *, email: str, password: str) -> tuple[User, str]:
    user = get_user_by_email(db, email)
    if not user or not verify_password(password or "", user.password_hash):
        logger.info("sign in refused", extra={"email": (email or "").strip().lower()})
        raise AuthError("Invalid credentials")
    return user, create_token(user)


# ============================================================
# PASSWORDS
# ============================================================
def request_password_reset(db: Session, email: str, *, email_backend: EmailBackend) -> User | None:
    """Email a reset link. Unknown emails are ignored without an error."""
    user = get_user_by_email(db, email)
    if not user:
        logger.info("password reset requested for unknown email")
        return None

    token = create_token(
        user,
        purpose=PURPOSE_RESET,
        expires_delta=timedelta(minutes=config.PASSWORD_RESET_EXPIRE_MINUTES),
    )
    send_best_effort(email_backend, build_password_reset_email(user.email, token))
    return user


def reset_password(db: Session, token: str, new_password: str) -> User:
    user, payload = _user_from_token(db, token, purpose=PURPOSE_RESET)
    if payload.get("pwh") != _hash_fingerprint(user):
        raise AuthError("Reset link already used")
    return update_password(db, user, new_password)


def update_password(db: Session, user: User, new_password: str) -> User:
    validate_password(new_password)
    user.password_hash = hash_password(new_password)
    db.flush()
    logger.info("password updated", extra={"user_id": str(user.id)})
    return user


# ============================================================
# EMAIL CONFIRMATION
# ============================================================
def send_confirmation(user: User, *, email_backend: EmailBackend) -> bool:
    token = create_token(
        user,
        purpose=PURPOSE_CONFIRM,
        expires_delta=timedelta(hours=config.EMAIL_CONFIRM_EXPIRE_HOURS),
    )
    return send_best_effort(email_backend, build_confirmation_email(user.email, token))


def confirm_email(db: Session, token: str) -> User:
    user, _ = _user_from_token(db, token, purpose=PURPOSE_CONFIRM)
    if user.email_confirmed_at is None:
        user.email_confirmed_at = utcnow()
        db.flush()
    return user


def resend_confirmation(db: Session, email: str, *, email_backend: EmailBackend) -> bool:
    user = get_user_by_email(db, email)
    if not user or user.email_confirmed_at is not None:
        return False
    return send_confirmation(user, email_backend=email_backend)
