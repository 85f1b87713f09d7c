"""
Login MFA enforcement for every authenticated request.
"""

from django.http import HttpRequest, HttpResponse
from django.utils.deprecation import MiddlewareMixin

from .gates import LoginGate


class LoginMfaMiddleware(MiddlewareMixin):
    """
    Run the login gate before each view.

    Uses ``process_view`` so the resolved route name is available; must come
    after the session, authentication and messages middleware.
    """

    PUBLIC_ROUTE_NAMES = {"accounts:login"}

    PUBLIC_PATH_PREFIXES = [
        "/static/",
        "/favicon.ico",
        "/admin/login/",
    ]

    # The challenge itself and the way out
    EXEMPT_ROUTE_NAMES = {
        "mfa:verify",
        "mfa:send-code",
        "mfa:verify.submit",
        "mfa:status",
        "mfa:revoke",
        "accounts:logout",
    }

    def process_view(self, request: HttpRequest, view_func, view_args, view_kwargs) -> HttpResponse | None:
        route_name = self._route_name(request)

        if route_name in self.PUBLIC_ROUTE_NAMES:
            return None
        if any(request.path.startswith(prefix) for prefix in self.PUBLIC_PATH_PREFIXES):
            return None

        user = getattr(request, "user", None)
        if user is not None and user.is_authenticated and route_name in self.EXEMPT_ROUTE_NAMES:
            return None

        decision = LoginGate().check(request)
        return None if decision.proceed else decision.response

    @staticmethod
    def _route_name(request: HttpRequest) -> str | None:
        match = getattr(request, "resolver_match", None)
        return match.view_name if match else None
