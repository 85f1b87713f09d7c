"""
Security-focused tests.
Tests security headers, client metadata helpers and audit logging.
"""

from unittest.mock import patch

import pytest
from django.test import Client, RequestFactory
from django.urls import reverse

from audit.utils import log_event
from core.security import get_client_ip, get_user_agent, hash_sensitive_data, is_private_ip
from mfa.models import OtpCode


@pytest.fixture
def client():
    """Return a Django test client."""
    return Client()


# =============================================================================
# SECURITY HEADERS TESTS
# =============================================================================

@pytest.mark.django_db
class TestSecurityHeaders:
    """Tests for security headers."""

    def test_x_content_type_options(self, client):
        response = client.get(reverse("accounts:login"))
        assert response.get("X-Content-Type-Options") == "nosniff"

    def test_x_frame_options(self, client):
        response = client.get(reverse("accounts:login"))
        assert response.get("X-Frame-Options") in ["DENY", "SAMEORIGIN"]

    def test_challenge_page_not_cached(self, client, user):
        client.force_login(user)
        response = client.get(reverse("mfa:verify"))
        assert "no-store" in response.get("Cache-Control", "")

    def test_no_hsts_over_http(self, client):
        response = client.get(reverse("accounts:login"))
        assert "Strict-Transport-Security" not in response


# =============================================================================
# CLIENT METADATA TESTS
# =============================================================================

class TestClientMetadata:
    """Tests for IP and user agent extraction."""

    def test_remote_addr(self):
        request = RequestFactory().get("/", REMOTE_ADDR="203.0.113.9")
        assert get_client_ip(request) == "203.0.113.9"

    def test_forwarded_for_trusted_from_private_proxy(self):
        request = RequestFactory().get(
            "/",
            REMOTE_ADDR="10.0.0.2",
            HTTP_X_FORWARDED_FOR="198.51.100.7, 10.0.0.2",
        )
        assert get_client_ip(request) == "198.51.100.7"

    def test_private_ranges(self):
        assert is_private_ip("192.168.1.10")
        assert is_private_ip("127.0.0.1")
        assert not is_private_ip("8.8.8.8")
        assert not is_private_ip("not-an-ip")

    def test_user_agent_truncated(self):
        request = RequestFactory().get("/", HTTP_USER_AGENT="x" * 400)
        assert len(get_user_agent(request)) == 255

    def test_hash_is_stable_and_opaque(self):
        assert hash_sensitive_data("a@example.com") == hash_sensitive_data("a@example.com")
        assert "a@example.com" not in hash_sensitive_data("a@example.com")


# =============================================================================
# AUDIT TESTS
# =============================================================================

@pytest.mark.django_db
class TestAuditTrail:
    """Tests for the persistent activity log and audit logger."""

    def test_log_event_truncates_and_stringifies(self, user):
        entry = log_event(
            action="user_deleted",
            module="accounts",
            description="d" * 300,
            actor=user,
            target_type="user",
            target_id=42,
            user_agent="u" * 400,
        )
        assert len(entry.description) == 255
        assert len(entry.user_agent) == 255
        assert entry.target_id == "42"

    def test_log_event_drops_anonymous_actor(self, db):
        from django.contrib.auth.models import AnonymousUser

        entry = log_event(action="login_failed", module="accounts", actor=AnonymousUser())
        assert entry.actor is None

    def test_verification_success_reaches_audit_logger(self, user, last_emailed_code):
        client = Client()
        client.force_login(user)
        client.post(reverse("mfa:send-code"), {"purpose": "login"}, content_type="application/json")
        assert OtpCode.objects.count() == 1

        with patch("core.security.AuditLogger.log_action") as mock_log:
            client.post(
                reverse("mfa:verify.submit"),
                {"code": last_emailed_code(), "purpose": "login"},
                content_type="application/json",
            )
        mock_log.assert_called_once()
        args, kwargs = mock_log.call_args
        assert args[0] == "MFA_VERIFY"
        assert kwargs["success"] is True
