"""
URL configuration for DealerHub project.
"""

from django.contrib import admin
from django.urls import include, path

from accounts import views as account_views

urlpatterns = [
    # Admin
    path("admin/", admin.site.urls),

    # Apps
    path("accounts/", include("accounts.urls")),
    path("mfa/", include("mfa.urls")),
    path("admin-tools/", include("accounts.admin_urls")),

    # Home
    path("", account_views.dashboard_view, name="home"),
]
