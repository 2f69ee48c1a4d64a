"""
Server-side session store.

A session maps an opaque cookie token to a user id. Handlers never reach a
global store: they receive one through the ``get_session_store`` dependency,
so tests can swap in ``InMemorySessionStore``.
"""
import logging
import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from fastapi import Request
from sqlalchemy.orm import Session

from jobhunter.core import config
from jobhunter.core.timeutils import utcnow, as_utc
from jobhunter.db.models.session import UserSession

logger = logging.getLogger(__name__)


@dataclass
class SessionRecord:
    sid: str
    user_id: str
    expires_at: datetime


def new_session_token() -> str:
    return secrets.token_urlsafe(32)


class SessionStore(ABC):
    """Keyed session state with a rolling expiry."""

    def __init__(self, ttl: Optional[timedelta] = None):
        self.ttl = ttl or timedelta(days=config.SESSION_TTL_DAYS)

    @abstractmethod
    def create(self, user_id: str) -> SessionRecord:
        """Start a session for ``user_id`` and return it."""

    @abstractmethod
    def get(self, sid: str) -> Optional[SessionRecord]:
        """
        Look up a live session and extend its expiry.

        Expired sessions are removed and reported as missing.
        """

    @abstractmethod
    def destroy(self, sid: str) -> None:
        """Remove a session. Unknown ids are ignored."""


class InMemorySessionStore(SessionStore):
    """Process-local store for tests and single-process development."""

    def __init__(self, ttl: Optional[timedelta] = None):
        super().__init__(ttl)
        self._sessions: Dict[str, SessionRecord] = {}

    def create(self, user_id: str) -> SessionRecord:
        record = SessionRecord(new_session_token(), user_id, utcnow() + self.ttl)
        self._sessions[record.sid] = record
        return record

    def get(self, sid: str) -> Optional[SessionRecord]:
        record = self._sessions.get(sid)
        if record is None:
            return None
        now = utcnow()
        if record.expires_at <= now:
            self._sessions.pop(sid, None)
            return None
        record.expires_at = now + self.ttl
        return record

    def destroy(self, sid: str) -> None:
        self._sessions.pop(sid, None)


class SqlSessionStore(SessionStore):
    """Sessions persisted in the ``sessions`` table."""

    def __init__(self, session_factory: Callable[[], Session], ttl: Optional[timedelta] = None):
        super().__init__(ttl)
        self.session_factory = session_factory

    def create(self, user_id: str) -> SessionRecord:
        db = self.session_factory()
        try:
            row = UserSession(sid=new_session_token(), user_id=user_id, expires_at=utcnow() + self.ttl)
            db.add(row)
            db.commit()
            return SessionRecord(row.sid, row.user_id, as_utc(row.expires_at))
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def get(self, sid: str) -> Optional[SessionRecord]:
        db = self.session_factory()
        try:
            row = db.query(UserSession).filter(UserSession.sid == sid).first()
            if row is None:
                return None
            now = utcnow()
            if as_utc(row.expires_at) <= now:
                db.delete(row)
                db.commit()
                logger.debug("Expired session removed")
                return None
            row.expires_at = now + self.ttl
            db.commit()
            return SessionRecord(row.sid, row.user_id, as_utc(row.expires_at))
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def destroy(self, sid: str) -> None:
        db = self.session_factory()
        try:
            db.query(UserSession).filter(UserSession.sid == sid).delete(synchronize_session=False)
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def purge_expired(self) -> int:
        db = self.session_factory()
        try:
            removed = db.query(UserSession).filter(UserSession.expires_at <= utcnow()).delete(
                synchronize_session=False
            )
            db.commit()
            return removed
        finally:
            db.close()


def get_session_store(request: Request) -> SessionStore:
    """Session store dependency; the app installs one on startup."""
    return request.app.state.session_store
