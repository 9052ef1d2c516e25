"""Admin classes for events and their merchandise catalogue."""

from django.contrib import admin

from events import models
from events.admin.base import EventLinkMixin


class MerchItemInline(admin.TabularInline):  # type: ignore[type-arg]
    model = models.MerchItem
    extra = 0
    fields = ["item_id", "name", "purchase_limit_per_participant"]
    show_change_link = True


class MerchVariantInline(admin.TabularInline):  # type: ignore[type-arg]
    model = models.MerchVariant
    extra = 0
    fields = ["variant_id", "label", "size", "color", "price", "stock_qty"]


@admin.register(models.Event)
class EventAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    list_display = [
        "name",
        "organizer",
        "event_type",
        "status",
        "eligibility",
        "start_date",
        "registration_limit",
        "registration_count",
    ]
    list_filter = ["status", "event_type", "eligibility"]
    search_fields = ["name", "description", "organizer__organizer_name", "organizer__username"]
    autocomplete_fields = ["organizer"]
    readonly_fields = ["id", "created_at", "updated_at"]
    date_hierarchy = "start_date"
    inlines = [MerchItemInline]

    @admin.display(description="Registrations")
    def registration_count(self, obj: models.Event) -> int:
        return obj.registrations.confirmed().count()


@admin.register(models.MerchItem)
class MerchItemAdmin(admin.ModelAdmin, EventLinkMixin):  # type: ignore[type-arg]
    list_display = ["name", "item_id", "event_link", "purchase_limit_per_participant"]
    search_fields = ["name", "item_id", "event__name"]
    autocomplete_fields = ["event"]
    inlines = [MerchVariantInline]
