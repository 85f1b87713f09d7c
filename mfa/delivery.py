"""
Email delivery of one-time passcodes.
"""

import logging
import smtplib

from django.conf import settings
from django.core.mail import send_mail
from django.template.loader import render_to_string

from .actions import action_text
from .exceptions import DeliveryError
from .models import OtpPurpose

logger = logging.getLogger("security")

SUBJECTS = {
    OtpPurpose.LOGIN: "Your Login Verification Code",
    OtpPurpose.SENSITIVE_ACTION: "Security Verification Required",
    OtpPurpose.PASSWORD_RESET: "Password Reset Verification Code",
}

PURPOSE_TEXT = {
    OtpPurpose.LOGIN: "sign in to your account",
    OtpPurpose.SENSITIVE_ACTION: "confirm a sensitive action",
    OtpPurpose.PASSWORD_RESET: "reset your password",
}


def deliver_otp_email(user, otp, code: str) -> None:
    """Send ``code`` to the owner of ``otp``; raise DeliveryError on failure."""
    lifetime = otp.expires_at - otp.created_at
    body = render_to_string("mfa/email/otp_code.txt", {
        "user": user,
        "code": code,
        "expires_in_minutes": int(lifetime.total_seconds() // 60),
        "purpose_text": PURPOSE_TEXT.get(otp.purpose, "verify your identity"),
        "action_text": action_text(otp.action) if otp.action else None,
    })
    try:
        send_mail(
            SUBJECTS.get(otp.purpose, "Verification Code Required"),
            body,
            settings.DEFAULT_FROM_EMAIL,
            [user.email],
            fail_silently=False,
        )
    except (smtplib.SMTPException, OSError) as exc:
        logger.error(
            "Failed to send OTP",
            extra={"user_id": user.pk, "otp_id": otp.pk, "error": str(exc)},
        )
        raise DeliveryError() from exc
