"""
Project-wide security middleware.
"""

from django.conf import settings
from django.http import HttpRequest, HttpResponse
from django.utils.deprecation import MiddlewareMixin

from .security import SECURITY_HEADERS


class SecurityHeadersMiddleware(MiddlewareMixin):
    """Add security headers to all responses."""

    def process_response(self, request: HttpRequest, response: HttpResponse) -> HttpResponse:
        for header, value in SECURITY_HEADERS.items():
            if header not in response:
                response[header] = value

        if not settings.DEBUG and request.is_secure():
            response['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'

        return response
