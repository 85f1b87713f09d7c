"""
Per-session record of recent successful verifications.

Each scope (``login`` or a named action) keeps one ``verified_at``
timestamp in the session. A record is valid while
``now - verified_at <= window`` (inclusive); an expired record is dropped
the first time it is looked at.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from django.utils import timezone
from django.utils.dateparse import parse_datetime

from .conf import TrustWindows
from .context import SessionContext

SESSION_KEY_PREFIX = "mfa_verified:"


@dataclass(frozen=True)
class TrustScope:
    action: Optional[str] = None

    @classmethod
    def login(cls) -> "TrustScope":
        return cls()

    @classmethod
    def for_action(cls, action: Optional[str]) -> "TrustScope":
        return cls(action=str(action) if action else None)

    @property
    def is_login(self) -> bool:
        return self.action is None

    @property
    def key(self) -> str:
        return "login" if self.is_login else f"action:{self.action}"


class SessionTrustStore:
    def __init__(
        self,
        session: SessionContext,
        windows: Optional[TrustWindows] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.session = session
        self.windows = windows or TrustWindows()
        self.clock = clock or timezone.now

    @staticmethod
    def session_key(scope: TrustScope) -> str:
        return f"{SESSION_KEY_PREFIX}{scope.key}"

    def verified_at(self, scope: TrustScope) -> Optional[datetime]:
        raw = self.session.get(self.session_key(scope))
        if not raw:
            return None
        value = parse_datetime(raw) if isinstance(raw, str) else None
        if value is None:
            self.invalidate(scope)
        return value

    def expires_at(self, scope: TrustScope) -> Optional[datetime]:
        verified = self.verified_at(scope)
        if verified is None:
            return None
        return verified + self.windows.window_for(scope)

    def is_valid(self, scope: TrustScope) -> bool:
        verified = self.verified_at(scope)
        if verified is None:
            return False
        if self.clock() - verified <= self.windows.window_for(scope):
            return True
        self.invalidate(scope)
        return False

    def mark_verified(self, scope: TrustScope) -> datetime:
        now = self.clock()
        self.session.put(self.session_key(scope), now.isoformat())
        return now

    def invalidate(self, scope: TrustScope) -> None:
        self.session.forget(self.session_key(scope))

    def invalidate_all(self) -> int:
        keys = [key for key in self.session.keys() if key.startswith(SESSION_KEY_PREFIX)]
        for key in keys:
            self.session.forget(key)
        return len(keys)
