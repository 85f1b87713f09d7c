"""
Tests for the sensitive-action registry and the MFA policy engine.
"""

from unittest.mock import patch

import pytest

from accounts.models import Role, User
from mfa.actions import (
    RegisteredAction,
    SensitiveAction,
    UnregisteredAction,
    action_text,
    humanize_action,
    resolve_action,
    sensitive_actions,
)
from mfa.conf import MfaSettings
from mfa.policy import MfaPolicyEngine


def make_user(role=Role.SALES, **kwargs):
    """Unsaved user; the policy only reads attributes."""
    return User(email=f"{role}@example.com", role=role, **kwargs)


# =============================================================================
# ACTION REGISTRY TESTS
# =============================================================================

class TestActionRegistry:
    """Tests for resolving action names."""

    def test_registered_action_resolves(self):
        resolved = resolve_action("delete_user")
        assert isinstance(resolved, RegisteredAction)
        assert resolved.action is SensitiveAction.DELETE_USER
        assert resolved.requires_mfa is True
        assert resolved.display_text == "Delete User Account"

    def test_enum_member_resolves_like_its_name(self):
        assert resolve_action(SensitiveAction.BACKUP_DATABASE) == resolve_action("backup_database")

    def test_exempt_action_is_registered_without_mfa(self):
        resolved = resolve_action("view_activity_log")
        assert isinstance(resolved, RegisteredAction)
        assert resolved.requires_mfa is False

    def test_unknown_action_is_unregistered(self):
        resolved = resolve_action("foo_bar")
        assert isinstance(resolved, UnregisteredAction)
        assert resolved.requires_mfa is False
        assert resolved.display_text == "Foo Bar"

    def test_action_text_falls_back_to_humanized_name(self):
        assert action_text("change_user_role") == "Change User Permissions"
        assert action_text("approve_trade_in") == "Approve Trade In"

    def test_humanize_keeps_existing_capitals(self):
        assert humanize_action("export_VIN_list") == "Export VIN List"

    def test_sensitive_actions_lists_only_gated_actions(self):
        listing = sensitive_actions()
        assert listing["delete_user"] == "Delete User Account"
        assert listing["financial_transactions"] == "Process Financial Transactions"
        assert "view_activity_log" not in listing
        assert len(listing) == 9


# =============================================================================
# LOGIN POLICY TESTS
# =============================================================================

class TestLoginPolicy:
    """Tests for requires_mfa_for_login."""

    def test_admin_role_requires_mfa(self):
        engine = MfaPolicyEngine(MfaSettings())
        assert engine.requires_mfa_for_login(make_user(Role.ADMIN)) is True

    def test_manager_role_requires_mfa(self):
        engine = MfaPolicyEngine(MfaSettings())
        assert engine.requires_mfa_for_login(make_user(Role.MANAGER)) is True

    def test_sales_role_does_not_require_mfa(self):
        engine = MfaPolicyEngine(MfaSettings())
        assert engine.requires_mfa_for_login(make_user(Role.SALES)) is False

    def test_user_flag_requires_mfa(self):
        engine = MfaPolicyEngine(MfaSettings())
        assert engine.requires_mfa_for_login(make_user(Role.TECHNICIAN, mfa_required=True)) is True

    def test_staff_always_requires_mfa(self):
        engine = MfaPolicyEngine(MfaSettings(login_required_roles=()))
        assert engine.requires_mfa_for_login(make_user(Role.SALES, is_staff=True)) is True

    def test_wildcard_role_covers_everyone(self):
        engine = MfaPolicyEngine(MfaSettings(login_required_roles=("*",)))
        assert engine.requires_mfa_for_login(make_user(Role.SERVICE)) is True

    def test_global_toggle_disables_login_mfa(self):
        engine = MfaPolicyEngine(MfaSettings(login_enabled=False))
        admin = make_user(Role.ADMIN, is_staff=True, is_superuser=True, mfa_required=True)
        assert engine.requires_mfa_for_login(admin) is False

    def test_reads_django_settings_by_default(self, settings):
        settings.MFA_LOGIN_REQUIRED_ROLES = ["service"]
        engine = MfaPolicyEngine()
        assert engine.requires_mfa_for_login(make_user(Role.SERVICE)) is True
        assert engine.requires_mfa_for_login(make_user(Role.MANAGER)) is False


# =============================================================================
# ACTION POLICY TESTS
# =============================================================================

class TestActionPolicy:
    """Tests for requires_mfa_for_action."""

    @pytest.mark.parametrize("action", [a.value for a in SensitiveAction if a != SensitiveAction.VIEW_ACTIVITY_LOG])
    def test_registered_actions_require_mfa(self, action):
        engine = MfaPolicyEngine(MfaSettings())
        assert engine.requires_mfa_for_action(action, make_user()) is True

    def test_exempt_action_passes(self):
        engine = MfaPolicyEngine(MfaSettings())
        assert engine.requires_mfa_for_action("view_activity_log", make_user()) is False

    @patch("mfa.policy.logger")
    def test_unregistered_action_fails_open_and_is_logged(self, mock_logger):
        engine = MfaPolicyEngine(MfaSettings())
        assert engine.requires_mfa_for_action("foo_bar", make_user()) is False
        mock_logger.info.assert_called_once()
        assert mock_logger.info.call_args.kwargs["extra"]["action"] == "foo_bar"

    def test_action_policy_ignores_login_toggle(self):
        engine = MfaPolicyEngine(MfaSettings(login_enabled=False))
        assert engine.requires_mfa_for_action("delete_user", make_user()) is True
