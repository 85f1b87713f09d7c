import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="OtpCode",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code_hash", models.CharField(help_text="Salted HMAC of the code", max_length=64)),
                ("purpose", models.CharField(choices=[("login", "Login"), ("sensitive_action", "Sensitive Action"), ("password_reset", "Password Reset")], max_length=20)),
                ("action", models.CharField(blank=True, default="", help_text="Protected action, only for sensitive_action codes", max_length=64)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("expires_at", models.DateTimeField()),
                ("consumed_at", models.DateTimeField(blank=True, null=True)),
                ("superseded_at", models.DateTimeField(blank=True, help_text="Set when a newer code replaced this one before use", null=True)),
                ("ip_address", models.CharField(blank=True, default="", max_length=45)),
                ("user_agent", models.CharField(blank=True, default="", max_length=255)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="otp_codes", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "verbose_name": "one-time passcode",
                "verbose_name_plural": "one-time passcodes",
                "indexes": [
                    models.Index(fields=["user", "purpose", "action"], name="mfa_otp_owner_idx"),
                    models.Index(fields=["expires_at"], name="mfa_otp_expires_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(consumed_at__isnull=True, superseded_at__isnull=True),
                        fields=("user", "purpose", "action"),
                        name="mfa_one_open_code_per_scope",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(expires_at__gt=models.F("created_at")),
                        name="mfa_otp_expires_after_created",
                    ),
                ],
            },
        ),
    ]
