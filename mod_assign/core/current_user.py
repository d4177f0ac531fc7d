from typing import Callable

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from mod_assign.core.context import RequestContext
from mod_assign.core.deps import get_clock, get_db
from mod_assign.core.permissions import SITE_ADMIN
from mod_assign.core.security import decode_access_token
from mod_assign.models.user import User

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise unauthorized

    try:
        payload = decode_access_token(credentials.credentials)
        user_id = int(payload.get("sub"))
    except (jwt.PyJWTError, TypeError, ValueError):
        raise unauthorized

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise unauthorized
    return user


def get_request_context(
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    clock: Callable[[], int] = Depends(get_clock),
) -> RequestContext:
    return RequestContext(db=db, actor=me, clock=clock)


def require_site_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != SITE_ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Site administrator role required",
        )
    return current_user
