"""
URL routes for user administration; every route sits behind an MFA action gate.
"""

from django.urls import path

from . import views

app_name = "admin_tools"

urlpatterns = [
    path("users/<int:pk>/delete/", views.delete_user_view, name="user-delete"),
    path("users/<int:pk>/role/", views.change_role_view, name="user-role"),
    path("users/export/", views.export_users_view, name="user-export"),
    path("activity-log/", views.activity_log_view, name="activity-log"),
]
