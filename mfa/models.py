"""
One-time passcodes issued for login, sensitive actions and password resets.
"""

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.crypto import constant_time_compare, salted_hmac


class OtpPurpose(models.TextChoices):
    LOGIN = "login", "Login"
    SENSITIVE_ACTION = "sensitive_action", "Sensitive Action"
    PASSWORD_RESET = "password_reset", "Password Reset"


class OtpCodeQuerySet(models.QuerySet):
    def for_owner(self, user, purpose: str, action: str | None = None):
        return self.filter(user=user, purpose=purpose, action=action or "")

    def open(self):
        """Neither consumed nor superseded (may still be expired)."""
        return self.filter(consumed_at__isnull=True, superseded_at__isnull=True)

    def outstanding(self, now=None):
        return self.open().filter(expires_at__gte=now or timezone.now())

    def expired(self, now=None):
        return self.filter(expires_at__lt=now or timezone.now())


class OtpCode(models.Model):
    """A single-use code. Rows are kept for audit; expiry is a time check."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="otp_codes",
    )

    code_hash = models.CharField(
        max_length=64,
        help_text="Salted HMAC of the code",
    )

    purpose = models.CharField(max_length=20, choices=OtpPurpose.choices)

    action = models.CharField(
        max_length=64,
        blank=True,
        default="",
        help_text="Protected action, only for sensitive_action codes",
    )

    created_at = models.DateTimeField(default=timezone.now)
    expires_at = models.DateTimeField()
    consumed_at = models.DateTimeField(null=True, blank=True)

    superseded_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Set when a newer code replaced this one before use",
    )

    ip_address = models.CharField(max_length=45, blank=True, default="")
    user_agent = models.CharField(max_length=255, blank=True, default="")
    metadata = models.JSONField(default=dict, blank=True)

    objects = OtpCodeQuerySet.as_manager()

    class Meta:
        verbose_name = "one-time passcode"
        verbose_name_plural = "one-time passcodes"
        indexes = [
            models.Index(fields=["user", "purpose", "action"], name="mfa_otp_owner_idx"),
            models.Index(fields=["expires_at"], name="mfa_otp_expires_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["user", "purpose", "action"],
                condition=Q(consumed_at__isnull=True, superseded_at__isnull=True),
                name="mfa_one_open_code_per_scope",
            ),
            models.CheckConstraint(
                condition=Q(expires_at__gt=models.F("created_at")),
                name="mfa_otp_expires_after_created",
            ),
        ]

    def __str__(self) -> str:
        scope = f"{self.purpose}:{self.action}" if self.action else self.purpose
        return f"OTP {scope} for {self.user}"

    @staticmethod
    def hash_code(code: str) -> str:
        return salted_hmac("mfa-otp-code", code).hexdigest()

    def matches(self, code: str) -> bool:
        return constant_time_compare(self.code_hash, self.hash_code(code))

    @property
    def is_consumed(self) -> bool:
        return self.consumed_at is not None

    def is_expired(self, now=None) -> bool:
        return (now or timezone.now()) > self.expires_at

    def claim(self, now=None) -> bool:
        """
        Mark the code consumed if nobody else has.

        Conditional update on ``consumed_at IS NULL``: of two concurrent
        claims exactly one sees a changed row.
        """
        now = now or timezone.now()
        updated = OtpCode.objects.filter(pk=self.pk, consumed_at__isnull=True).update(consumed_at=now)
        if updated:
            self.consumed_at = now
        return updated == 1
