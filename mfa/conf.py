"""
MFA configuration, collected from Django settings into explicit objects.
"""

from dataclasses import dataclass, field
from datetime import timedelta

from django.conf import settings


@dataclass(frozen=True)
class TrustWindows:
    """How long a successful verification is trusted, per scope kind."""

    login_window_minutes: int = 1440
    action_window_minutes: int = 30

    def window_for(self, scope) -> timedelta:
        minutes = self.login_window_minutes if scope.is_login else self.action_window_minutes
        return timedelta(minutes=minutes)


@dataclass(frozen=True)
class MfaSettings:
    login_enabled: bool = True
    login_required_roles: tuple[str, ...] = ("admin", "manager")
    trust_windows: TrustWindows = field(default_factory=TrustWindows)
    otp_length: int = 6
    otp_expiry_minutes: int = 10
    otp_expiry_by_purpose: dict = field(default_factory=dict)
    otp_max_per_hour: int = 5

    @classmethod
    def from_django(cls) -> "MfaSettings":
        return cls(
            login_enabled=getattr(settings, "MFA_LOGIN_ENABLED", True),
            login_required_roles=tuple(getattr(settings, "MFA_LOGIN_REQUIRED_ROLES", ("admin", "manager"))),
            trust_windows=TrustWindows(
                login_window_minutes=getattr(settings, "MFA_LOGIN_WINDOW_MINUTES", 1440),
                action_window_minutes=getattr(settings, "MFA_ACTION_WINDOW_MINUTES", 30),
            ),
            otp_length=getattr(settings, "MFA_OTP_LENGTH", 6),
            otp_expiry_minutes=getattr(settings, "MFA_OTP_EXPIRY_MINUTES", 10),
            otp_expiry_by_purpose=dict(getattr(settings, "MFA_OTP_EXPIRY_BY_PURPOSE", {})),
            otp_max_per_hour=getattr(settings, "MFA_OTP_MAX_PER_HOUR", 5),
        )

    def otp_lifetime(self, purpose: str) -> timedelta:
        minutes = self.otp_expiry_by_purpose.get(str(purpose), self.otp_expiry_minutes)
        return timedelta(minutes=minutes)
