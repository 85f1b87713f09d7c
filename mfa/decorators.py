"""
View decorator that puts a route behind a sensitive-action OTP challenge.
"""

from functools import wraps

from .gates import ActionGate


def mfa_required(action=None):
    """
    Require a recent verification for ``action`` before running the view.

    Usage::

        @login_required
        @mfa_required(SensitiveAction.DELETE_USER)
        def delete_user_view(request, pk): ...

    Without an action the login trust scope is checked instead.
    """

    def decorator(view_func):
        @wraps(view_func)
        def wrapper(request, *args, **kwargs):
            decision = ActionGate().check(request, action)
            if not decision.proceed:
                return decision.response
            return view_func(request, *args, **kwargs)

        wrapper.mfa_action = str(action) if action else None
        return wrapper

    return decorator
