"""
Security utilities shared across DealerHub apps.
"""

import hashlib
import logging
from typing import Optional

from django.utils import timezone

logger = logging.getLogger('security')


# =============================================================================
# CLIENT IDENTIFICATION
# =============================================================================

# Known private/internal IP ranges (for filtering X-Forwarded-For)
PRIVATE_IP_PREFIXES = (
    '10.',
    '172.16.', '172.17.', '172.18.', '172.19.',
    '172.20.', '172.21.', '172.22.', '172.23.',
    '172.24.', '172.25.', '172.26.', '172.27.',
    '172.28.', '172.29.', '172.30.', '172.31.',
    '192.168.',
    '127.',
    '::1',
    'fc00:',
    'fe80:',
)


def is_private_ip(ip: str) -> bool:
    """Check if an IP address is private/internal."""
    if not ip:
        return True
    ip_lower = ip.lower().strip()
    if ip_lower in ('localhost', '', 'unknown'):
        return True
    return any(ip_lower.startswith(prefix) for prefix in PRIVATE_IP_PREFIXES)


def get_client_ip(request) -> str:
    """
    Extract client IP from request, handling proxies.

    The first public address in X-Forwarded-For wins (at most 5 hops are
    considered); otherwise REMOTE_ADDR is used.
    """
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ips = [ip.strip() for ip in x_forwarded_for.split(',')][:5]

        for ip in ips:
            if ip and not is_private_ip(ip):
                if '.' in ip or ':' in ip:  # IPv4 or IPv6
                    return ip

        # If all are private, return the first one (internal request)
        if ips and ips[0]:
            return ips[0]

    return request.META.get('REMOTE_ADDR', 'unknown')


def get_user_agent(request, max_length: int = 255) -> str:
    return request.META.get('HTTP_USER_AGENT', '')[:max_length]


# =============================================================================
# AUDIT LOGGING
# =============================================================================

class AuditLogger:
    """
    Structured audit lines for authentication events.

    These go to the ``audit`` logger (rotating file); the persistent activity
    trail lives in the ``audit`` app.
    """

    def __init__(self):
        self.logger = logging.getLogger('audit')

    def log_action(
        self,
        action: str,
        user,
        request,
        details: Optional[dict] = None,
        success: bool = True,
    ):
        """Log an auditable action."""
        log_data = {
            'timestamp': timezone.now().isoformat(),
            'action': action,
            'user_id': user.id if user and user.is_authenticated else None,
            'ip_address': get_client_ip(request),
            'user_agent': get_user_agent(request, 200),
            'path': request.path,
            'method': request.method,
            'success': success,
            'details': details or {},
        }

        if success:
            self.logger.info(f"AUDIT: {action}", extra=log_data)
        else:
            self.logger.warning(f"AUDIT FAILED: {action}", extra=log_data)

    def log_login(self, user, request, success: bool = True):
        self.log_action('LOGIN', user, request, success=success)

    def log_logout(self, user, request):
        self.log_action('LOGOUT', user, request)

    def log_mfa_verification(self, user, request, purpose: str, action: Optional[str], success: bool, reason: str = ""):
        """Log the outcome of an OTP verification attempt."""
        details = {'purpose': purpose, 'action': action}
        if reason:
            details['reason'] = reason
        self.log_action('MFA_VERIFY', user, request, details=details, success=success)


# Global audit logger instance
audit_logger = AuditLogger()


def hash_sensitive_data(data: str) -> str:
    """Create a SHA-256 hash of sensitive data for logging (never log raw PII)."""
    return hashlib.sha256(data.encode()).hexdigest()[:16]


# =============================================================================
# SECURITY HEADERS
# =============================================================================

SECURITY_HEADERS = {
    'X-Frame-Options': 'DENY',
    'X-Content-Type-Options': 'nosniff',
    'Referrer-Policy': 'strict-origin-when-cross-origin',
    'Permissions-Policy': (
        'geolocation=(), '
        'microphone=(), '
        'camera=(), '
        'payment=()'
    ),
    'Cross-Origin-Opener-Policy': 'same-origin',
    # Challenge pages must never be cached by intermediaries
    'Cache-Control': 'no-store',
}
