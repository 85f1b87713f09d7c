"""
Failure kinds raised by the MFA core.

Every one of them carries a user-facing ``message``; gates and views turn
them into redirects, flash messages or JSON errors.
"""


class MfaError(Exception):
    code = "mfa_error"
    default_message = "Verification failed."

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(MfaError):
    code = "unauthenticated"
    default_message = "Please sign in to continue."


class DeliveryError(MfaError):
    """The code was stored but could not be sent; the caller may resend."""

    code = "delivery_failed"
    default_message = "Failed to send verification code. Please try again."

    def __init__(self, message=None, challenge=None):
        super().__init__(message)
        self.challenge = challenge


class OtpRateLimited(MfaError):
    code = "rate_limited"
    default_message = "Too many verification codes requested. Please try again later."

    def __init__(self, message=None, retry_after=None):
        super().__init__(message)
        self.retry_after = retry_after


class VerificationError(MfaError):
    code = "verification_failed"


class InvalidCode(VerificationError):
    code = "invalid_code"
    default_message = "Invalid verification code."


class CodeExpired(VerificationError):
    code = "expired"
    default_message = "This verification code has expired. Please request a new one."


class AlreadyConsumed(VerificationError):
    code = "already_consumed"
    default_message = "This verification code has already been used. Please request a new one."
