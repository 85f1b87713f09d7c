"""
Django forms for the accounts app.
"""

from django import forms
from django.contrib.auth.forms import AuthenticationForm

from .models import Role

INPUT_CLASSES = "w-full px-4 py-3 rounded-lg border border-gray-300 focus:ring-2 focus:ring-indigo-500 focus:border-transparent"


class CustomAuthenticationForm(AuthenticationForm):
    """Login form using email as the username."""

    username = forms.EmailField(
        label="Email",
        widget=forms.EmailInput(attrs={
            "class": INPUT_CLASSES,
            "placeholder": "you@dealership.com",
            "autocomplete": "email",
        }),
    )
    password = forms.CharField(
        widget=forms.PasswordInput(attrs={
            "class": INPUT_CLASSES,
            "placeholder": "••••••••",
            "autocomplete": "current-password",
        }),
    )


class RoleChangeForm(forms.Form):
    """Assign a dealership role to a user."""

    role = forms.ChoiceField(
        choices=Role.choices,
        widget=forms.Select(attrs={"class": INPUT_CLASSES}),
    )
