"""
Serializers for the MFA endpoints.
"""

from rest_framework import serializers

from .conf import MfaSettings
from .models import OtpPurpose


class SendCodeSerializer(serializers.Serializer):
    """Request a fresh code for a purpose (and action)."""

    purpose = serializers.ChoiceField(choices=OtpPurpose.choices)
    action = serializers.CharField(required=False, allow_blank=True, max_length=64)

    def validate(self, attrs):
        if attrs["purpose"] == OtpPurpose.SENSITIVE_ACTION and not attrs.get("action"):
            raise serializers.ValidationError(
                {"action": "An action is required for sensitive action verification."}
            )
        return attrs


class MfaVerifySerializer(SendCodeSerializer):
    """Submitted verification code."""

    code = serializers.CharField(trim_whitespace=True)

    def validate_code(self, value):
        length = MfaSettings.from_django().otp_length
        if len(value) != length or not value.isdigit():
            raise serializers.ValidationError(f"Enter the {length}-digit verification code.")
        return value
