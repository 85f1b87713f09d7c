"""
Registry of sensitive actions that may be gated behind an OTP challenge.

Action names come from route decorators and request parameters. Names that
are not in ``SensitiveAction`` resolve to ``UnregisteredAction``, which is
exempt from MFA (fail-open). Keep that branch visible when adding actions.
"""

from dataclasses import dataclass

from django.db import models


class SensitiveAction(models.TextChoices):
    DELETE_ROLE = "delete_role", "Delete Role"
    DELETE_PERMISSION = "delete_permission", "Delete Permission"
    DELETE_USER = "delete_user", "Delete User Account"
    EDIT_ADMIN_USER = "edit_admin_user", "Edit Administrator Account"
    CHANGE_USER_ROLE = "change_user_role", "Change User Permissions"
    EXPORT_SENSITIVE_DATA = "export_sensitive_data", "Export Sensitive Data"
    SYSTEM_SETTINGS = "system_settings", "Modify System Settings"
    BACKUP_DATABASE = "backup_database", "Backup Database"
    FINANCIAL_TRANSACTIONS = "financial_transactions", "Process Financial Transactions"
    VIEW_ACTIVITY_LOG = "view_activity_log", "View Activity Log"


# Whether each registered action participates in MFA gating
ACTION_REGISTRY: dict[SensitiveAction, bool] = {
    SensitiveAction.DELETE_ROLE: True,
    SensitiveAction.DELETE_PERMISSION: True,
    SensitiveAction.DELETE_USER: True,
    SensitiveAction.EDIT_ADMIN_USER: True,
    SensitiveAction.CHANGE_USER_ROLE: True,
    SensitiveAction.EXPORT_SENSITIVE_DATA: True,
    SensitiveAction.SYSTEM_SETTINGS: True,
    SensitiveAction.BACKUP_DATABASE: True,
    SensitiveAction.FINANCIAL_TRANSACTIONS: True,
    SensitiveAction.VIEW_ACTIVITY_LOG: False,
}


def humanize_action(name: str) -> str:
    """``delete_user`` -> ``Delete User``; leaves the rest of each word alone."""
    return " ".join(word[:1].upper() + word[1:] for word in name.replace("_", " ").split(" "))


@dataclass(frozen=True)
class RegisteredAction:
    action: SensitiveAction
    requires_mfa: bool

    @property
    def name(self) -> str:
        return self.action.value

    @property
    def display_text(self) -> str:
        return str(self.action.label)


@dataclass(frozen=True)
class UnregisteredAction:
    name: str
    requires_mfa: bool = False

    @property
    def display_text(self) -> str:
        return humanize_action(self.name)


def resolve_action(name) -> RegisteredAction | UnregisteredAction:
    try:
        action = SensitiveAction(str(name))
    except ValueError:
        return UnregisteredAction(name=str(name))
    return RegisteredAction(action=action, requires_mfa=ACTION_REGISTRY.get(action, True))


def action_text(name) -> str:
    return resolve_action(name).display_text


def sensitive_actions() -> dict[str, str]:
    """Registered actions that require MFA, keyed by name."""
    return {
        action.value: str(action.label)
        for action, requires_mfa in ACTION_REGISTRY.items()
        if requires_mfa
    }
