"""
Views for the accounts app (Django templates).
"""

import csv
import logging
from functools import wraps

from django.contrib import messages
from django.contrib.auth import get_user_model
from django.contrib.auth.decorators import login_required
from django.contrib.auth.views import LoginView, LogoutView
from django.core.exceptions import PermissionDenied
from django.http import HttpResponse, JsonResponse
from django.shortcuts import get_object_or_404, redirect, render
from django.urls import reverse_lazy
from django.utils import timezone
from django.views.decorators.http import require_GET, require_http_methods

from audit.models import AuditLog
from audit.utils import log_event
from core.security import audit_logger, get_client_ip, get_user_agent, hash_sensitive_data
from mfa.actions import SensitiveAction
from mfa.context import SessionContext
from mfa.decorators import mfa_required
from mfa.trust import SessionTrustStore

from .forms import CustomAuthenticationForm, RoleChangeForm
from .models import Role

User = get_user_model()
logger = logging.getLogger("security")

ACTIVITY_LOG_LIMIT = 100


def roles_required(*allowed_roles):
    """Restrict a view to users holding one of ``allowed_roles``. Superusers always pass."""

    def decorator(view_func):
        @wraps(view_func)
        def wrapper(request, *args, **kwargs):
            user = request.user
            if not (user.is_superuser or user.role in allowed_roles):
                logger.warning(
                    "Role check failed",
                    extra={"user_id": user.pk, "path": request.path},
                )
                raise PermissionDenied
            return view_func(request, *args, **kwargs)
        return wrapper
    return decorator


def _request_meta(request) -> dict:
    return {
        "ip_address": get_client_ip(request),
        "user_agent": get_user_agent(request),
    }


class CustomLoginView(LoginView):
    """Email login; the MFA middleware challenges the first request after it."""

    template_name = "accounts/login.html"
    authentication_form = CustomAuthenticationForm
    redirect_authenticated_user = True

    def get_default_redirect_url(self):
        return str(reverse_lazy("home"))

    def form_valid(self, form):
        user = form.get_user()
        audit_logger.log_login(user, self.request, success=True)
        log_event(
            action="login",
            module="accounts",
            description="Signed in",
            actor=user,
            **_request_meta(self.request),
        )
        return super().form_valid(form)

    def form_invalid(self, form):
        email = self.request.POST.get("username", "").strip().lower()
        audit_logger.log_action(
            "LOGIN_FAILED",
            None,
            self.request,
            details={"email_attempted_hash": hash_sensitive_data(email) if email else None},
            success=False,
        )
        return super().form_invalid(form)


class CustomLogoutView(LogoutView):
    """Logout with audit logging; drops every MFA trust record first."""

    next_page = reverse_lazy("accounts:login")

    def dispatch(self, request, *args, **kwargs):
        if request.user.is_authenticated:
            SessionTrustStore(SessionContext.from_request(request)).invalidate_all()
            audit_logger.log_logout(request.user, request)
        return super().dispatch(request, *args, **kwargs)


@login_required
def dashboard_view(request):
    return render(request, "accounts/dashboard.html")


@login_required
@roles_required(Role.ADMIN)
@mfa_required(SensitiveAction.DELETE_USER)
@require_http_methods(["GET", "POST"])
def delete_user_view(request, pk: int):
    """Confirm on GET, delete on POST."""
    target = get_object_or_404(User, pk=pk)

    if target.pk == request.user.pk:
        messages.error(request, "You cannot delete your own account here.")
        return redirect("home")

    if request.method == "POST":
        email = target.email
        target.delete()
        log_event(
            action="user_deleted",
            module="accounts",
            description=f"Deleted user {email}",
            actor=request.user,
            target_type="user",
            target_id=pk,
            **_request_meta(request),
        )
        messages.success(request, f"User {email} has been deleted.")
        return redirect("home")

    return render(request, "accounts/confirm_delete_user.html", {"target": target})


@login_required
@roles_required(Role.ADMIN)
@mfa_required(SensitiveAction.CHANGE_USER_ROLE)
@require_http_methods(["GET", "POST"])
def change_role_view(request, pk: int):
    target = get_object_or_404(User, pk=pk)
    if request.method != "POST":
        form = RoleChangeForm(initial={"role": target.role})
        return render(request, "accounts/change_role.html", {"target": target, "form": form})

    form = RoleChangeForm(request.POST)
    if not form.is_valid():
        messages.error(request, "Choose a valid role.")
        return render(request, "accounts/change_role.html", {"target": target, "form": form})

    previous = target.role
    target.role = form.cleaned_data["role"]
    target.save(update_fields=["role"])
    log_event(
        action="user_role_changed",
        module="accounts",
        description=f"Changed role of {target.email} from {previous} to {target.role}",
        actor=request.user,
        target_type="user",
        target_id=target.pk,
        properties={"from": previous, "to": target.role},
        **_request_meta(request),
    )
    messages.success(request, f"{target.email} is now {target.get_role_display()}.")
    return redirect("home")


@login_required
@roles_required(Role.ADMIN)
@mfa_required(SensitiveAction.EXPORT_SENSITIVE_DATA)
@require_GET
def export_users_view(request):
    """CSV export of staff accounts."""
    response = HttpResponse(content_type="text/csv")
    filename = f"users-{timezone.localdate().isoformat()}.csv"
    response["Content-Disposition"] = f'attachment; filename="{filename}"'

    writer = csv.writer(response)
    writer.writerow(["email", "first_name", "last_name", "role", "is_active", "date_joined"])
    users = User.objects.order_by("email")
    for user in users:
        writer.writerow([
            user.email,
            user.first_name,
            user.last_name,
            user.role,
            user.is_active,
            user.date_joined.isoformat(),
        ])

    log_event(
        action="users_exported",
        module="accounts",
        description="Exported user list",
        actor=request.user,
        properties={"rows": len(users)},
        **_request_meta(request),
    )
    return response


@login_required
@roles_required(Role.ADMIN, Role.MANAGER)
@mfa_required(SensitiveAction.VIEW_ACTIVITY_LOG)
@require_GET
def activity_log_view(request):
    """Most recent activity-log entries as JSON."""
    entries = AuditLog.objects.select_related("actor")[:ACTIVITY_LOG_LIMIT]
    return JsonResponse({
        "results": [
            {
                "id": entry.pk,
                "action": entry.action,
                "module": entry.module,
                "description": entry.description,
                "actor": entry.actor.email if entry.actor else None,
                "target_type": entry.target_type,
                "target_id": entry.target_id,
                "ip_address": entry.ip_address,
                "created_at": entry.created_at.isoformat(),
            }
            for entry in entries
        ],
    })
