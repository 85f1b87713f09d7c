"""
Pytest fixtures for DealerHub tests.
"""

import re

import pytest
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core import mail
from django.core.cache import cache
from rest_framework.test import APIClient

from accounts.models import Role

User = get_user_model()

PASSWORD = "SecurePass123!@#"


def pytest_configure():
    """Configure pytest settings."""
    settings.TESTING = True
    # Argon2 is slow; tests only need a working hasher
    settings.PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]


@pytest.fixture(autouse=True)
def clear_cache():
    """Clear Django cache before and after each test to prevent cache pollution."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    """Return an API client for testing."""
    return APIClient()


@pytest.fixture
def create_user(db):
    """Factory fixture to create users."""
    def _create_user(email="sales@example.com", password=PASSWORD, **kwargs):
        return User.objects.create_user(email=email, password=password, **kwargs)
    return _create_user


@pytest.fixture
def user(create_user):
    """A sales consultant: no login MFA by default."""
    return create_user(email="testuser@example.com", role=Role.SALES)


@pytest.fixture
def admin_user(create_user):
    """A dealership administrator: login MFA required."""
    return create_user(email="admin@example.com", role=Role.ADMIN)


@pytest.fixture
def superuser(db):
    """Create and return a superuser."""
    return User.objects.create_superuser(email="root@example.com", password=PASSWORD)


@pytest.fixture
def authenticated_client(api_client, user):
    """API client logged in through the session, as the MFA middleware sees it."""
    api_client.force_login(user)
    return api_client


@pytest.fixture
def last_emailed_code():
    """Return a helper that extracts the most recent OTP from the mail outbox."""
    def _code():
        assert mail.outbox, "no email was sent"
        match = re.search(r"\b(\d{6})\b", mail.outbox[-1].body)
        assert match, "no code in email body"
        return match.group(1)
    return _code
