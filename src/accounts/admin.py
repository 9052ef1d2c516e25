"""Admin interface for accounts app."""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from accounts.models import FestUser


@admin.register(FestUser)
class FestUserAdmin(UserAdmin):  # type: ignore[type-arg]
    """Admin for fest users; organizers are governed through role and account status."""

    list_display = ["username", "email", "role", "organizer_name", "account_status", "is_active"]
    list_filter = ["role", "account_status", "is_staff", "is_active"]
    search_fields = ["username", "email", "first_name", "last_name", "organizer_name"]
    fieldsets = (
        *UserAdmin.fieldsets,  # type: ignore[misc]
        ("Fest", {"fields": ("role", "organizer_name", "discord_webhook_url", "account_status")}),
    )
