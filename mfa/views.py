"""
Views for the MFA challenge: the verification page and its JSON endpoints.
"""

import logging

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.shortcuts import redirect, render
from django.utils.http import url_has_allowed_host_and_scheme
from django.views.decorators.http import require_GET
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from core.security import audit_logger

from .actions import action_text
from .conf import MfaSettings
from .context import RequestMeta, SessionContext
from .exceptions import DeliveryError, OtpRateLimited, VerificationError
from .gates import CHALLENGE_KEY, INTENDED_ACTION_KEY, INTENDED_URL_KEY
from .models import OtpPurpose
from .policy import MfaPolicyEngine
from .serializers import MfaVerifySerializer, SendCodeSerializer
from .services import OtpService
from .trust import SessionTrustStore, TrustScope

logger = logging.getLogger("security")

DEFAULT_REDIRECT_URL = "/"


def wants_json(request) -> bool:
    """True for XHR/API clients, False for plain form posts."""
    if "application/json" in request.headers.get("Accept", ""):
        return True
    return (request.content_type or "") == "application/json"


def _trust_store(request, service: OtpService) -> SessionTrustStore:
    return SessionTrustStore(
        SessionContext.from_request(request),
        service.config.trust_windows,
        clock=service.clock,
    )


def _isoformat(value):
    return value.isoformat() if value else None


@login_required
@require_GET
def verify_view(request):
    """Challenge page; reads (and clears) the payload the gate flashed."""
    session = SessionContext.from_request(request)
    challenge = session.pull(CHALLENGE_KEY) or {}
    action = session.get(INTENDED_ACTION_KEY) or challenge.get("action")
    purpose = OtpPurpose.SENSITIVE_ACTION if action else OtpPurpose.LOGIN

    context = {
        "action": action,
        "actionText": action_text(action) if action else None,
        "purpose": purpose.value,
        "canResend": True,
        "code_length": MfaSettings.from_django().otp_length,
        "otp_sent": challenge.get("otp_sent"),
        "expires_at": challenge.get("expires_at"),
        "message": challenge.get("message"),
    }
    if wants_json(request):
        return JsonResponse(context)
    return render(request, "mfa/verify.html", context)


class SendCodeAPIView(APIView):
    """
    Issue a fresh code for the current user, superseding any open one.

    JSON clients get the result as JSON; the resend form on the challenge
    page is redirected back to it with a flash message.
    """

    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = SendCodeSerializer(data=request.data)
        if not serializer.is_valid():
            return self._reply(
                request,
                {"success": False, "message": "Invalid request.", "errors": serializer.errors},
                status.HTTP_422_UNPROCESSABLE_ENTITY,
            )

        user = request.user
        purpose = serializer.validated_data["purpose"]
        action = serializer.validated_data.get("action") or None
        meta = RequestMeta.from_request(request)
        service = OtpService()

        try:
            if purpose == OtpPurpose.SENSITIVE_ACTION:
                session = SessionContext.from_request(request)
                challenge = service.generate_sensitive_action_otp(
                    user,
                    action,
                    metadata={
                        "request_url": session.get(INTENDED_URL_KEY),
                        "user_agent": meta.user_agent,
                        "ip_address": meta.ip_address,
                    },
                    request_meta=meta,
                )
            elif purpose == OtpPurpose.PASSWORD_RESET:
                challenge = service.generate_password_reset_otp(user, meta)
            else:
                challenge = service.generate_login_otp(user, meta)
        except OtpRateLimited as exc:
            return self._reply(
                request,
                {
                    "success": False,
                    "message": exc.message,
                    "retry_after": _isoformat(exc.retry_after),
                },
                status.HTTP_429_TOO_MANY_REQUESTS,
            )
        except DeliveryError as exc:
            return self._reply(
                request,
                {"success": False, "message": exc.message},
                status.HTTP_503_SERVICE_UNAVAILABLE,
            )

        return self._reply(request, {
            "success": True,
            "message": challenge.message,
            "expires_at": _isoformat(challenge.expires_at),
        })

    def _reply(self, request, body, status_code=status.HTTP_200_OK):
        if wants_json(request):
            return Response(body, status=status_code)
        if body["success"]:
            messages.success(request, body["message"], fail_silently=True)
        else:
            messages.error(request, body["message"], fail_silently=True)
        return redirect("mfa:verify")


class VerifySubmitView(APIView):
    """
    Check a submitted code and record trust for its scope.

    JSON clients get ``{success, message, redirect_url}`` (422 on failure);
    form posts are redirected to the intended URL, or back to the challenge
    page with a flash error.
    """

    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = MfaVerifySerializer(data=request.data)
        if not serializer.is_valid():
            return self._failure(request, "Enter a valid verification code.", serializer.errors)

        user = request.user
        purpose = serializer.validated_data["purpose"]
        action = serializer.validated_data.get("action") or None
        service = OtpService()

        try:
            service.verify(user, serializer.validated_data["code"], purpose, action)
        except VerificationError as exc:
            logger.warning(
                "OTP verification failed",
                extra={"user_id": user.pk, "purpose": purpose, "action": action, "reason": exc.code},
            )
            audit_logger.log_mfa_verification(user, request, purpose, action, success=False, reason=exc.code)
            return self._failure(request, exc.message)

        session = SessionContext.from_request(request)
        store = _trust_store(request, service)
        if purpose == OtpPurpose.SENSITIVE_ACTION:
            store.mark_verified(TrustScope.for_action(action))
        elif purpose == OtpPurpose.LOGIN:
            store.mark_verified(TrustScope.login())
            session.cycle_key()

        redirect_url = session.pull(INTENDED_URL_KEY) or DEFAULT_REDIRECT_URL
        if not url_has_allowed_host_and_scheme(
            redirect_url,
            allowed_hosts={request.get_host()},
            require_https=request.is_secure(),
        ):
            redirect_url = DEFAULT_REDIRECT_URL
        session.forget(INTENDED_ACTION_KEY)

        audit_logger.log_mfa_verification(user, request, purpose, action, success=True)
        message = "Verification successful."

        if wants_json(request):
            return Response({"success": True, "message": message, "redirect_url": redirect_url})
        messages.success(request, message, fail_silently=True)
        return redirect(redirect_url)

    def _failure(self, request, message, errors=None):
        if wants_json(request):
            body = {"success": False, "message": message}
            if errors:
                body["errors"] = errors
            return Response(body, status=status.HTTP_422_UNPROCESSABLE_ENTITY)
        messages.error(request, message, fail_silently=True)
        return redirect("mfa:verify")


class StatusAPIView(APIView):
    """Whether the session holds valid trust for the login or an action scope."""

    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        action = request.query_params.get("action") or None
        store = _trust_store(request, OtpService())
        scope = TrustScope.for_action(action)

        verified_at = store.verified_at(scope)
        expires_at = store.expires_at(scope)
        return Response({
            "is_verified": store.is_valid(scope),
            "verified_at": _isoformat(verified_at),
            "expires_at": _isoformat(expires_at),
            "action": action,
        })


class RevokeAPIView(APIView):
    """Forget trust for one action, or every scope when none is given."""

    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        action = request.data.get("action") or None
        store = _trust_store(request, OtpService())

        if action:
            store.invalidate(TrustScope.for_action(action))
        else:
            store.invalidate_all()

        audit_logger.log_action(
            "MFA_REVOKE",
            request.user,
            request,
            details={"action": action},
        )
        return Response({"success": True, "message": "MFA session revoked successfully."})


class SettingsAPIView(APIView):
    """OTP statistics and the sensitive-action registry for the current user."""

    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        return Response({
            "stats": OtpService().stats(request.user),
            "sensitive_actions": MfaPolicyEngine().sensitive_actions(),
        })
