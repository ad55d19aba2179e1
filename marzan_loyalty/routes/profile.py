from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from marzan_loyalty.db import get_db
from marzan_loyalty.deps.auth import CurrentSession, get_current_session
from marzan_loyalty.deps.services import get_postal_lookup, get_session_events
from marzan_loyalty.schemas.user import PostalAddressOut, ProfileOut, ProfileUpdate
from marzan_loyalty.services.postal_service import PostalLookup
from marzan_loyalty.services.profile_service import profile_view, update_profile
from marzan_loyalty.services.session_events import SessionEvent, SessionEventBus


router = APIRouter(tags=["profile"])


@router.get("/profile", response_model=ProfileOut)
def get_profile(session: CurrentSession = Depends(get_current_session)):
    return profile_view(session.user)


@router.put("/profile", response_model=ProfileOut)
def put_profile(
    payload: ProfileUpdate,
    session: CurrentSession = Depends(get_current_session),
    db: Session = Depends(get_db),
    events: SessionEventBus = Depends(get_session_events),
):
    user = update_profile(db, session.user, payload.model_dump(exclude_unset=True))
    db.commit()
    db.refresh(user)

    events.emit(SessionEvent.USER_UPDATED, user_id=user.id, email=user.email)
    return profile_view(user)


@router.get("/postal/{cep}", response_model=PostalAddressOut)
def lookup_postal_code(cep: str, postal: PostalLookup = Depends(get_postal_lookup)):
    return postal.lookup(cep)
