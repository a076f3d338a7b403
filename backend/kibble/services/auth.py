"""Config-declared users and in-memory login sessions."""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

import bcrypt

from ..config import UserConfig, get_config

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"


@dataclass
class Session:
    """A logged-in user. Boards are owned by ``username``."""

    session_id: str
    username: str
    email: str
    role: str
    created_at: datetime
    last_activity: datetime

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE

    def is_expired(self, now: datetime, idle_timeout: timedelta) -> bool:
        return now - self.last_activity > idle_timeout


class AuthService:
    """
    Checks passwords against the bcrypt hashes in the configuration file.

    Sessions live in memory only, so a restart logs everyone out. A session
    expires after ``session.timeout_minutes`` without a request.
    """

    def __init__(self):
        self._sessions: dict[str, Session] = {}

    @staticmethod
    def _idle_timeout() -> timedelta:
        return timedelta(minutes=get_config().session.timeout_minutes)

    def find_user(self, username: str) -> Optional[UserConfig]:
        return next((u for u in get_config().users if u.username == username), None)

    def authenticate(self, username: str, password: str) -> Optional[Session]:
        """Open a session for valid credentials, or return ``None``."""
        user = self.find_user(username)
        if user is None or not bcrypt.checkpw(
            password.encode("utf-8"), user.password_hash.encode("utf-8")
        ):
            logger.warning(f"Failed login for {username!r}")
            return None

        self.prune_expired()

        now = datetime.utcnow()
        session = Session(
            session_id=secrets.token_urlsafe(32),
            username=user.username,
            email=user.email,
            role=user.role,
            created_at=now,
            last_activity=now,
        )
        self._sessions[session.session_id] = session
        logger.info(f"{user.username} logged in")
        return session

    def get_session(self, session_id: str) -> Optional[Session]:
        """Look up a live session and mark it as used."""
        session = self._sessions.get(session_id)
        if session is None:
            return None

        now = datetime.utcnow()
        if session.is_expired(now, self._idle_timeout()):
            self.invalidate_session(session_id)
            return None

        session.last_activity = now
        return session

    def invalidate_session(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def prune_expired(self) -> int:
        """Drop every idle session; returns how many were dropped."""
        now = datetime.utcnow()
        timeout = self._idle_timeout()
        stale = [sid for sid, s in self._sessions.items() if s.is_expired(now, timeout)]
        for session_id in stale:
            del self._sessions[session_id]
        return len(stale)


_auth_service: Optional[AuthService] = None


def get_auth_service() -> AuthService:
    """Get the process-wide auth service."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service
