"""
Tests for the session trust store.
"""

from datetime import timedelta

from django.utils import timezone

from mfa.conf import TrustWindows
from mfa.context import SessionContext
from mfa.trust import SessionTrustStore, TrustScope


class FakeClock:
    """Settable clock for window arithmetic."""

    def __init__(self):
        self.now = timezone.now()

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


def make_store(session=None, clock=None):
    session = {} if session is None else session
    return SessionTrustStore(
        SessionContext(session),
        TrustWindows(login_window_minutes=1440, action_window_minutes=30),
        clock=clock or FakeClock(),
    ), session


class TestTrustScope:
    """Tests for scope keys."""

    def test_login_scope_key(self):
        assert TrustScope.login().key == "login"
        assert TrustScope.login().is_login

    def test_action_scope_key(self):
        scope = TrustScope.for_action("delete_user")
        assert scope.key == "action:delete_user"
        assert not scope.is_login

    def test_missing_action_means_login_scope(self):
        assert TrustScope.for_action(None) == TrustScope.login()
        assert TrustScope.for_action("") == TrustScope.login()


class TestSessionTrustStore:
    """Tests for marking, checking and dropping trust records."""

    def test_unmarked_scope_is_not_valid(self):
        store, _ = make_store()
        assert store.is_valid(TrustScope.login()) is False
        assert store.verified_at(TrustScope.login()) is None
        assert store.expires_at(TrustScope.login()) is None

    def test_mark_verified_stores_timestamp_in_session(self):
        clock = FakeClock()
        store, session = make_store(clock=clock)
        store.mark_verified(TrustScope.for_action("delete_user"))
        assert session["mfa_verified:action:delete_user"] == clock.now.isoformat()
        assert store.verified_at(TrustScope.for_action("delete_user")) == clock.now

    def test_action_trust_valid_at_exact_window(self):
        clock = FakeClock()
        store, _ = make_store(clock=clock)
        scope = TrustScope.for_action("delete_user")
        store.mark_verified(scope)
        clock.advance(minutes=30)
        assert store.is_valid(scope) is True

    def test_action_trust_expires_after_window_and_is_evicted(self):
        clock = FakeClock()
        store, session = make_store(clock=clock)
        scope = TrustScope.for_action("delete_user")
        store.mark_verified(scope)
        clock.advance(minutes=31)
        assert store.is_valid(scope) is False
        assert "mfa_verified:action:delete_user" not in session

    def test_login_trust_uses_login_window(self):
        clock = FakeClock()
        store, _ = make_store(clock=clock)
        scope = TrustScope.login()
        store.mark_verified(scope)
        clock.advance(minutes=1440)
        assert store.is_valid(scope) is True
        clock.advance(minutes=1)
        assert store.is_valid(scope) is False

    def test_expires_at_adds_scope_window(self):
        clock = FakeClock()
        store, _ = make_store(clock=clock)
        store.mark_verified(TrustScope.for_action("system_settings"))
        assert store.expires_at(TrustScope.for_action("system_settings")) == clock.now + timedelta(minutes=30)
        store.mark_verified(TrustScope.login())
        assert store.expires_at(TrustScope.login()) == clock.now + timedelta(minutes=1440)

    def test_scopes_are_independent(self):
        store, _ = make_store()
        store.mark_verified(TrustScope.for_action("delete_user"))
        assert store.is_valid(TrustScope.for_action("delete_user")) is True
        assert store.is_valid(TrustScope.for_action("change_user_role")) is False
        assert store.is_valid(TrustScope.login()) is False

    def test_remark_refreshes_timestamp(self):
        clock = FakeClock()
        store, _ = make_store(clock=clock)
        scope = TrustScope.for_action("delete_user")
        store.mark_verified(scope)
        clock.advance(minutes=25)
        store.mark_verified(scope)
        clock.advance(minutes=25)
        assert store.is_valid(scope) is True

    def test_invalidate_forgets_one_scope(self):
        store, session = make_store()
        store.mark_verified(TrustScope.login())
        store.mark_verified(TrustScope.for_action("delete_user"))
        store.invalidate(TrustScope.for_action("delete_user"))
        assert list(session) == ["mfa_verified:login"]

    def test_invalidate_all_leaves_other_session_data(self):
        session = {"mfa_intended_url": "/admin-tools/users/export/", "_auth_user_id": "1"}
        store, _ = make_store(session=session)
        store.mark_verified(TrustScope.login())
        store.mark_verified(TrustScope.for_action("delete_user"))
        assert store.invalidate_all() == 2
        assert session == {"mfa_intended_url": "/admin-tools/users/export/", "_auth_user_id": "1"}

    def test_garbage_timestamp_is_dropped(self):
        store, session = make_store(session={"mfa_verified:login": "not-a-date"})
        assert store.is_valid(TrustScope.login()) is False
        assert "mfa_verified:login" not in session
