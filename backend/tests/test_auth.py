"""
Tests for config-declared users and in-memory sessions.
"""

from datetime import datetime, timedelta

from conftest import PASSWORD
from kibble.services.auth import AuthService


class TestAuthService:
    def test_valid_credentials_open_session(self):
        auth = AuthService()
        session = auth.authenticate("alice", PASSWORD)

        assert session is not None
        assert session.username == "alice"
        assert session.is_admin is False
        assert auth.get_session(session.session_id) is session

    def test_wrong_password_and_unknown_user(self):
        auth = AuthService()
        assert auth.authenticate("alice", "nope") is None
        assert auth.authenticate("mallory", PASSWORD) is None

    def test_admin_role(self):
        session = AuthService().authenticate("root", PASSWORD)
        assert session.is_admin is True

    def test_idle_session_expires(self, config):
        auth = AuthService()
        session = auth.authenticate("alice", PASSWORD)
        session.last_activity = datetime.utcnow() - timedelta(
            minutes=config.session.timeout_minutes + 1
        )

        assert auth.get_session(session.session_id) is None
        # Gone for good, not just hidden
        assert auth.prune_expired() == 0

    def test_login_prunes_idle_sessions(self, config):
        auth = AuthService()
        stale = auth.authenticate("bob", PASSWORD)
        stale.last_activity = datetime.utcnow() - timedelta(days=1)

        auth.authenticate("alice", PASSWORD)

        assert stale.session_id not in auth._sessions

    def test_logout(self):
        auth = AuthService()
        session = auth.authenticate("alice", PASSWORD)
        auth.invalidate_session(session.session_id)
        auth.invalidate_session(session.session_id)
        assert auth.get_session(session.session_id) is None
