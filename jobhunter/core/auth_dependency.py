import logging
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from jobhunter.core import config
from jobhunter.core.errors import Unauthenticated
from jobhunter.core.session_store import SessionStore, get_session_store
from jobhunter.db.models.user import User
from jobhunter.db.session import get_db

logger = logging.getLogger(__name__)


def get_session_token(request: Request) -> Optional[str]:
    """Session token from the session cookie, if any."""
    return request.cookies.get(config.SESSION_COOKIE_NAME)


def resolve_session_user(token: Optional[str], db: Session, store: SessionStore) -> Optional[User]:
    """
    Map a session token to its user.

    A live session whose user row has disappeared is destroyed on the spot.
    """
    if not token:
        return None

    record = store.get(token)
    if record is None:
        return None

    user = db.query(User).filter(User.id == record.user_id).first()
    if user is None:
        logger.warning(f"Session references missing user_id={record.user_id}; destroying session")
        store.destroy(token)
        return None
    return user


def require_session(
    request: Request,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
) -> User:
    """Current User for session-gated endpoints; 401 otherwise."""
    user = resolve_session_user(get_session_token(request), db, store)
    if user is None:
        raise Unauthenticated()
    return user


def optional_session_user(
    request: Request,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
) -> Optional[User]:
    """Current User when logged in, otherwise None."""
    return resolve_session_user(get_session_token(request), db, store)
