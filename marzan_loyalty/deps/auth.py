from dataclasses import dataclass

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from marzan_loyalty.db import get_db
from marzan_loyalty.errors import AuthError, PermissionDenied
from marzan_loyalty.models.user import User
from marzan_loyalty.services.auth_service import get_user_from_access_token


bearer = HTTPBearer(auto_error=False)


@dataclass
class CurrentSession:
    user: User
    token: str

    @property
    def user_id(self):
        return self.user.id

    @property
    def email(self) -> str:
        return self.user.email

    @property
    def is_admin(self) -> bool:
        return bool(self.user.is_admin)


def get_current_session(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: Session = Depends(get_db),
) -> CurrentSession:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthError("Not authenticated")
    user = get_user_from_access_token(db, credentials.credentials)
    return CurrentSession(user=user, token=credentials.credentials)


def require_admin(session: CurrentSession = Depends(get_current_session)) -> CurrentSession:
    # read from the users row on every request, never from the token
    if not session.is_admin:
        raise PermissionDenied()
    return session
