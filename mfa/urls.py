"""
URL routes for the MFA challenge.
"""

from django.urls import path

from . import views

app_name = "mfa"

urlpatterns = [
    path("verify/", views.verify_view, name="verify"),
    path("verify/submit/", views.VerifySubmitView.as_view(), name="verify.submit"),
    path("send-code/", views.SendCodeAPIView.as_view(), name="send-code"),
    path("status/", views.StatusAPIView.as_view(), name="status"),
    path("revoke/", views.RevokeAPIView.as_view(), name="revoke"),
    path("settings/", views.SettingsAPIView.as_view(), name="settings"),
]
