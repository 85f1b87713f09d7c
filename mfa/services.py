"""
OTP lifecycle: generation, delivery, verification.
"""

import logging
import secrets
import string
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from django.db import IntegrityError, transaction
from django.db.models import Count
from django.utils import timezone

from audit.utils import log_event

from .actions import action_text
from .conf import MfaSettings
from .context import RequestMeta
from .delivery import deliver_otp_email
from .exceptions import AlreadyConsumed, CodeExpired, DeliveryError, InvalidCode, OtpRateLimited
from .models import OtpCode, OtpPurpose

logger = logging.getLogger("security")

CODE_SENT_MESSAGE = "Verification code sent to your email address."


@dataclass
class OtpChallenge:
    """What callers learn about an issued code (never the code itself)."""

    code_ref: int
    purpose: str
    action: Optional[str]
    expires_at: datetime
    message: str
    delivered: bool = True
    delivery_error: Optional[str] = None


class OtpService:
    """
    Issues and verifies one-time passcodes.

    At most one open code exists per (user, purpose, action): generating a
    new one supersedes the previous. ``verify`` is single-use; the second
    call with the same code raises ``AlreadyConsumed``.
    """

    def __init__(
        self,
        config: Optional[MfaSettings] = None,
        clock: Optional[Callable[[], datetime]] = None,
        deliver: Optional[Callable] = None,
    ):
        self.config = config or MfaSettings.from_django()
        self.clock = clock or timezone.now
        self.deliver = deliver or deliver_otp_email

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def generate_login_otp(self, user, request_meta: Optional[RequestMeta] = None) -> OtpChallenge:
        return self._generate(user, OtpPurpose.LOGIN, request_meta=request_meta)

    def generate_sensitive_action_otp(
        self,
        user,
        action: str,
        metadata: Optional[dict] = None,
        request_meta: Optional[RequestMeta] = None,
    ) -> OtpChallenge:
        if not action:
            raise ValueError("A sensitive-action code needs an action name")
        return self._generate(
            user,
            OtpPurpose.SENSITIVE_ACTION,
            action=str(action),
            metadata=metadata,
            request_meta=request_meta,
        )

    def generate_password_reset_otp(self, user, request_meta: Optional[RequestMeta] = None) -> OtpChallenge:
        return self._generate(user, OtpPurpose.PASSWORD_RESET, request_meta=request_meta)

    def _generate(
        self,
        user,
        purpose: str,
        action: Optional[str] = None,
        metadata: Optional[dict] = None,
        request_meta: Optional[RequestMeta] = None,
    ) -> OtpChallenge:
        meta = request_meta or RequestMeta()
        now = self.clock()
        self._check_rate_limit(user, purpose, now)

        code = self.generate_code()
        otp = self._store(user, purpose, action, code, now, meta, metadata or {})

        log_event(
            action=f"otp_generated_{purpose}",
            module="mfa",
            description=self._describe(purpose, action),
            actor=user,
            target_type="otp_code",
            target_id=otp.pk,
            ip_address=meta.ip_address,
            user_agent=meta.user_agent,
            properties={"purpose": str(purpose), "action": action, "expires_at": otp.expires_at.isoformat()},
        )
        logger.info(
            "OTP generated",
            extra={"user_id": user.pk, "otp_id": otp.pk, "purpose": str(purpose), "action": action},
        )

        challenge = OtpChallenge(
            code_ref=otp.pk,
            purpose=str(purpose),
            action=action,
            expires_at=otp.expires_at,
            message=CODE_SENT_MESSAGE,
        )
        try:
            self.deliver(user, otp, code)
        except DeliveryError as exc:
            challenge.delivered = False
            challenge.delivery_error = exc.message
            challenge.message = exc.message
            exc.challenge = challenge
            raise
        return challenge

    def _store(self, user, purpose, action, code, now, meta, metadata) -> OtpCode:
        # A concurrent generate for the same scope trips the partial unique
        # constraint; one retry supersedes the winner's code.
        retries = 1
        while True:
            try:
                with transaction.atomic():
                    OtpCode.objects.for_owner(user, purpose, action).open().update(superseded_at=now)
                    return OtpCode.objects.create(
                        user=user,
                        code_hash=OtpCode.hash_code(code),
                        purpose=purpose,
                        action=action or "",
                        created_at=now,
                        expires_at=now + self.config.otp_lifetime(purpose),
                        ip_address=meta.ip_address[:45],
                        user_agent=meta.user_agent[:255],
                        metadata=metadata,
                    )
            except IntegrityError:
                if not retries:
                    raise
                retries -= 1

    def outstanding_challenge(self, user, purpose: str, action: Optional[str] = None) -> Optional[OtpChallenge]:
        """The code already mailed for this scope, if it can still be used."""
        otp = (
            OtpCode.objects.for_owner(user, purpose, action)
            .outstanding(self.clock())
            .order_by("-created_at", "-pk")
            .first()
        )
        if otp is None:
            return None
        return OtpChallenge(
            code_ref=otp.pk,
            purpose=str(purpose),
            action=action,
            expires_at=otp.expires_at,
            message="A verification code was already sent. Please check your email.",
        )

    def _check_rate_limit(self, user, purpose, now) -> None:
        window_start = now - timedelta(hours=1)
        recent = OtpCode.objects.filter(user=user, purpose=purpose, created_at__gte=window_start)
        if recent.count() < self.config.otp_max_per_hour:
            return
        oldest = recent.order_by("created_at").first()
        retry_after = oldest.created_at + timedelta(hours=1) if oldest else now
        logger.warning(
            "OTP rate limit exceeded",
            extra={"user_id": user.pk, "purpose": str(purpose)},
        )
        raise OtpRateLimited(retry_after=retry_after)

    def generate_code(self) -> str:
        return "".join(secrets.choice(string.digits) for _ in range(self.config.otp_length))

    @staticmethod
    def _describe(purpose, action) -> str:
        if purpose == OtpPurpose.SENSITIVE_ACTION:
            return f"Verification code issued for {action_text(action)}"
        if purpose == OtpPurpose.PASSWORD_RESET:
            return "Password reset verification code issued"
        return "Login verification code issued"

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    def verify(self, user, submitted_code: str, purpose: str, action: Optional[str] = None) -> OtpCode:
        """
        Consume the current code for (user, purpose, action).

        Raises InvalidCode, CodeExpired or AlreadyConsumed. A wrong code
        leaves the stored code untouched.
        """
        submitted_code = (submitted_code or "").strip()
        otp = self._find_candidate(user, purpose, action)
        if otp is None or not submitted_code or not otp.matches(submitted_code):
            raise InvalidCode()
        if otp.is_consumed:
            raise AlreadyConsumed()
        now = self.clock()
        if otp.is_expired(now):
            raise CodeExpired()
        if not otp.claim(now):
            raise AlreadyConsumed()
        return otp

    def _find_candidate(self, user, purpose, action) -> Optional[OtpCode]:
        """Newest code for the scope that a later code has not replaced."""
        return (
            OtpCode.objects.for_owner(user, purpose, action)
            .filter(superseded_at__isnull=True)
            .order_by("-created_at", "-pk")
            .first()
        )

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def stats(self, user=None) -> dict:
        now = self.clock()
        codes = OtpCode.objects.all()
        if user is not None:
            codes = codes.filter(user=user)

        by_purpose = {
            row["purpose"]: row["count"]
            for row in codes.values("purpose").annotate(count=Count("id")).order_by()
        }
        return {
            "total_generated": codes.count(),
            "total_used": codes.filter(consumed_at__isnull=False).count(),
            "total_superseded": codes.filter(superseded_at__isnull=False).count(),
            "total_expired": codes.expired(now).filter(consumed_at__isnull=True).count(),
            "active_codes": codes.outstanding(now).count(),
            "by_purpose": by_purpose,
        }
