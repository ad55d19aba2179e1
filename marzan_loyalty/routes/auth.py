from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from marzan_loyalty.db import get_db
from marzan_loyalty.deps.auth import CurrentSession, get_current_session
from marzan_loyalty.deps.services import get_email_backend, get_session_events
from marzan_loyalty.schemas.auth import (
    EmailIn,
    LoginIn,
    MessageOut,
    ResetPasswordIn,
    SignupIn,
    TokenIn,
    TokenOut,
    UpdatePasswordIn,
)
from marzan_loyalty.schemas.user import UserOut
from marzan_loyalty.services import auth_service
from marzan_loyalty.services.email_service import EmailBackend
from marzan_loyalty.services.session_events import SessionEvent, SessionEventBus


router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=TokenOut, status_code=201)
def signup(
    payload: SignupIn,
    db: Session = Depends(get_db),
    email_backend: EmailBackend = Depends(get_email_backend),
    events: SessionEventBus = Depends(get_session_events),
):
    user = auth_service.sign_up(
        db,
        email=payload.email,
        password=payload.password,
        full_name=payload.full_name,
        phone=payload.phone,
        email_backend=email_backend,
    )
    db.commit()
    db.refresh(user)

    events.emit(SessionEvent.SIGNED_UP, user_id=user.id, email=user.email)
    return TokenOut(access_token=auth_service.create_token(user))


@router.post("/login", response_model=TokenOut)
def login(
    payload: LoginIn,
    db: Session = Depends(get_db),
    events: SessionEventBus = Depends(get_session_events),
):
    user, token = auth_service.sign_in(db, email=payload.email, password=payload.password)
    events.emit(SessionEvent.SIGNED_IN, user_id=user.id, email=user.email)
    return TokenOut(access_token=token)


@router.post("/logout", response_model=MessageOut)
def logout(
    session: CurrentSession = Depends(get_current_session),
    events: SessionEventBus = Depends(get_session_events),
):
    events.emit(SessionEvent.SIGNED_OUT, user_id=session.user_id, email=session.email)
    return MessageOut(message="Signed out")


@router.post("/forgot-password", response_model=MessageOut)
def forgot_password(
    payload: EmailIn,
    db: Session = Depends(get_db),
    email_backend: EmailBackend = Depends(get_email_backend),
    events: SessionEventBus = Depends(get_session_events),
):
    user = auth_service.request_password_reset(db, payload.email, email_backend=email_backend)
    if user:
        events.emit(SessionEvent.PASSWORD_RECOVERY, user_id=user.id, email=user.email)
    # same answer whether or not the email is registered
    return MessageOut(message="If the email is registered, a reset link has been sent")


@router.post("/reset-password", response_model=MessageOut)
def reset_password(
    payload: ResetPasswordIn,
    db: Session = Depends(get_db),
    events: SessionEventBus = Depends(get_session_events),
):
    user = auth_service.reset_password(db, payload.token, payload.password)
    db.commit()
    events.emit(SessionEvent.USER_UPDATED, user_id=user.id, email=user.email)
    return MessageOut(message="Password updated")


@router.post("/password", response_model=MessageOut)
def update_password(
    payload: UpdatePasswordIn,
    session: CurrentSession = Depends(get_current_session),
    db: Session = Depends(get_db),
    events: SessionEventBus = Depends(get_session_events),
):
    auth_service.update_password(db, session.user, payload.password)
    db.commit()
    events.emit(SessionEvent.USER_UPDATED, user_id=session.user_id, email=session.email)
    return MessageOut(message="Password updated")


@router.post("/confirm", response_model=UserOut)
def confirm(
    payload: TokenIn,
    db: Session = Depends(get_db),
    events: SessionEventBus = Depends(get_session_events),
):
    user = auth_service.confirm_email(db, payload.token)
    db.commit()
    db.refresh(user)
    events.emit(SessionEvent.EMAIL_CONFIRMED, user_id=user.id, email=user.email)
    return user


@router.post("/resend-confirmation", response_model=MessageOut)
def resend_confirmation(
    payload: EmailIn,
    db: Session = Depends(get_db),
    email_backend: EmailBackend = Depends(get_email_backend),
):
    sent = auth_service.resend_confirmation(db, payload.email, email_backend=email_backend)
    return MessageOut(message="Confirmation email requested", sent=sent)


@router.get("/me", response_model=UserOut)
def me(session: CurrentSession = Depends(get_current_session)):
    return session.user
