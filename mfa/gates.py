"""
Login and per-action MFA gates.

A gate looks at the authenticated user and the session trust record for
one scope and either lets the request through or redirects to the
verification page. A code already mailed for the scope is reused; a new
one is generated only when none is outstanding. The redirect carries its
payload in the ``mfa_challenge`` session key.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from django.contrib import messages
from django.contrib.auth.views import redirect_to_login
from django.http import HttpResponse
from django.shortcuts import redirect
from django.utils.http import url_has_allowed_host_and_scheme

from .actions import action_text
from .conf import MfaSettings
from .context import RequestMeta, SessionContext, current_user
from .exceptions import DeliveryError, OtpRateLimited, Unauthenticated
from .models import OtpPurpose
from .policy import MfaPolicyEngine
from .services import CODE_SENT_MESSAGE, OtpChallenge, OtpService
from .trust import SessionTrustStore, TrustScope

logger = logging.getLogger("security")

INTENDED_URL_KEY = "mfa_intended_url"
INTENDED_ACTION_KEY = "mfa_intended_action"
CHALLENGE_KEY = "mfa_challenge"

ACTION_CHALLENGE_MESSAGE = "Additional verification required for this action."


class GateState(enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    PASSTHROUGH = "passthrough"
    CHALLENGE_ISSUED = "challenge_issued"


@dataclass
class GateDecision:
    state: GateState
    response: Optional[HttpResponse] = None
    challenge: Optional[OtpChallenge] = None

    @property
    def proceed(self) -> bool:
        return self.state is GateState.PASSTHROUGH


class BaseGate:
    def __init__(
        self,
        policy: Optional[MfaPolicyEngine] = None,
        otp_service: Optional[OtpService] = None,
        config: Optional[MfaSettings] = None,
    ):
        self.config = config or MfaSettings.from_django()
        self.policy = policy or MfaPolicyEngine(self.config)
        self.otp_service = otp_service or OtpService(self.config)

    def trust_store(self, request) -> SessionTrustStore:
        return SessionTrustStore(
            SessionContext.from_request(request),
            self.config.trust_windows,
            clock=self.otp_service.clock,
        )

    def unauthenticated(self, request) -> GateDecision:
        return GateDecision(
            GateState.UNAUTHENTICATED,
            response=redirect_to_login(request.get_full_path()),
        )

    @staticmethod
    def intended_url(request) -> str:
        """
        Where verification sends the user back to.

        Only GET requests can be replayed by a redirect; for anything else
        the page the form was posted from is used when it is on this host.
        """
        if request.method in ("GET", "HEAD"):
            return request.get_full_path()
        referer = request.headers.get("Referer")
        if referer and url_has_allowed_host_and_scheme(
            referer,
            allowed_hosts={request.get_host()},
            require_https=request.is_secure(),
        ):
            return referer
        return request.get_full_path()

    def issue(self, request, user, purpose, action, generate) -> tuple[Optional[OtpChallenge], bool, str]:
        """
        Reuse the code already mailed for the scope, or run ``generate``.

        Returns (challenge, otp_sent, message).
        """
        pending = self.otp_service.outstanding_challenge(user, purpose, action)
        if pending is not None:
            return pending, True, pending.message
        try:
            challenge = generate()
        except DeliveryError as exc:
            messages.error(request, exc.message, fail_silently=True)
            return exc.challenge, False, exc.message
        except OtpRateLimited as exc:
            messages.error(request, exc.message, fail_silently=True)
            return None, False, exc.message
        return challenge, True, challenge.message

    def challenge_redirect(self, request, payload: dict, challenge) -> GateDecision:
        session = SessionContext.from_request(request)
        session.put(CHALLENGE_KEY, payload)
        return GateDecision(
            GateState.CHALLENGE_ISSUED,
            response=redirect("mfa:verify"),
            challenge=challenge,
        )

    @staticmethod
    def _expires(challenge) -> Optional[str]:
        return challenge.expires_at.isoformat() if challenge else None


class LoginGate(BaseGate):
    """Applied to every authenticated request outside the exempt routes."""

    def check(self, request) -> GateDecision:
        try:
            user = current_user(request)
        except Unauthenticated:
            return self.unauthenticated(request)

        if not self.policy.requires_mfa_for_login(user):
            return GateDecision(GateState.PASSTHROUGH)

        store = self.trust_store(request)
        if store.is_valid(TrustScope.login()):
            return GateDecision(GateState.PASSTHROUGH)

        session = SessionContext.from_request(request)
        session.put(INTENDED_URL_KEY, self.intended_url(request))
        session.forget(INTENDED_ACTION_KEY)

        challenge, otp_sent, message = self.issue(
            request,
            user,
            OtpPurpose.LOGIN,
            None,
            lambda: self.otp_service.generate_login_otp(user, RequestMeta.from_request(request)),
        )
        logger.info(
            "Login MFA challenge issued",
            extra={"user_id": user.pk, "otp_sent": otp_sent},
        )
        payload = {
            "otp_sent": otp_sent,
            "expires_at": self._expires(challenge),
            "message": message,
            "purpose": OtpPurpose.LOGIN.value,
        }
        return self.challenge_redirect(request, payload, challenge)


class ActionGate(BaseGate):
    """Applied to a route that performs one named sensitive action."""

    def check(self, request, action: Optional[str] = None) -> GateDecision:
        try:
            user = current_user(request)
        except Unauthenticated:
            return self.unauthenticated(request)

        action = str(action) if action else None
        if action and not self.policy.requires_mfa_for_action(action, user):
            return GateDecision(GateState.PASSTHROUGH)

        scope = TrustScope.for_action(action)
        store = self.trust_store(request)
        if store.is_valid(scope):
            return GateDecision(GateState.PASSTHROUGH)

        session = SessionContext.from_request(request)
        session.put(INTENDED_URL_KEY, self.intended_url(request))
        meta = RequestMeta.from_request(request)

        if action:
            session.put(INTENDED_ACTION_KEY, action)
            purpose = OtpPurpose.SENSITIVE_ACTION
            generate = lambda: self.otp_service.generate_sensitive_action_otp(  # noqa: E731
                user,
                action,
                metadata={
                    "request_url": meta.url,
                    "user_agent": meta.user_agent,
                    "ip_address": meta.ip_address,
                },
                request_meta=meta,
            )
        else:
            # No action named: fall back to the login scope
            session.forget(INTENDED_ACTION_KEY)
            purpose = OtpPurpose.LOGIN
            generate = lambda: self.otp_service.generate_login_otp(user, meta)  # noqa: E731

        challenge, otp_sent, message = self.issue(request, user, purpose, action, generate)
        if message == CODE_SENT_MESSAGE:
            message = ACTION_CHALLENGE_MESSAGE
        logger.info(
            "Action MFA challenge issued",
            extra={"user_id": user.pk, "action": action, "otp_sent": otp_sent},
        )
        payload = {
            "action": action,
            "actionText": action_text(action) if action else None,
            "purpose": purpose.value,
            "otp_sent": otp_sent,
            "message": message,
            "expires_at": self._expires(challenge),
        }
        return self.challenge_redirect(request, payload, challenge)
