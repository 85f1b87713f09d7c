"""
Per-request context handed to the MFA core instead of reaching for
``request.session`` and ``request.user`` everywhere.
"""

from dataclasses import dataclass

from core.security import get_client_ip, get_user_agent

from .exceptions import Unauthenticated


class SessionContext:
    """Key/value view of one browser session."""

    def __init__(self, session):
        self._session = session

    @classmethod
    def from_request(cls, request) -> "SessionContext":
        return cls(request.session)

    def get(self, key: str, default=None):
        return self._session.get(key, default)

    def put(self, key: str, value) -> None:
        self._session[key] = value

    def forget(self, key: str) -> None:
        self._session.pop(key, None)

    def has(self, key: str) -> bool:
        return key in self._session

    def pull(self, key: str, default=None):
        return self._session.pop(key, default)

    def keys(self) -> list[str]:
        return list(self._session.keys())

    def cycle_key(self) -> None:
        self._session.cycle_key()


@dataclass(frozen=True)
class RequestMeta:
    ip_address: str = ""
    user_agent: str = ""
    url: str = ""

    @classmethod
    def from_request(cls, request) -> "RequestMeta":
        return cls(
            ip_address=get_client_ip(request),
            user_agent=get_user_agent(request),
            url=request.build_absolute_uri(),
        )


def current_user(request):
    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated:
        raise Unauthenticated()
    return user
