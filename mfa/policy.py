"""
Decides whether a request must pass an OTP challenge.
"""

import logging
from typing import Optional

from .actions import UnregisteredAction, resolve_action, sensitive_actions
from .conf import MfaSettings

logger = logging.getLogger("security")

# Role entry that makes login MFA apply to every user
ALL_ROLES = "*"


class MfaPolicyEngine:
    """Pure decisions from configuration and the user object; no I/O."""

    def __init__(self, config: Optional[MfaSettings] = None):
        self.config = config or MfaSettings.from_django()

    def requires_mfa_for_login(self, user) -> bool:
        if not self.config.login_enabled:
            return False
        if user.is_staff or user.is_superuser:
            return True
        if getattr(user, "mfa_required", False):
            return True
        roles = self.config.login_required_roles
        return ALL_ROLES in roles or getattr(user, "role", None) in roles

    def requires_mfa_for_action(self, action: str, user) -> bool:
        resolved = resolve_action(action)
        if isinstance(resolved, UnregisteredAction):
            # Fail-open: unknown actions are not gated.
            logger.info(
                "Unregistered action is exempt from MFA",
                extra={"action": resolved.name, "user_id": getattr(user, "pk", None)},
            )
            return False
        return resolved.requires_mfa

    def sensitive_actions(self) -> dict[str, str]:
        return sensitive_actions()
