"""Admin classes for registrations, merchandise orders, tickets and the attendance trail."""

from django.contrib import admin
from django.http import HttpRequest

from events import models
from events.admin.base import EventLinkMixin, ParticipantLinkMixin


@admin.register(models.Registration)
class RegistrationAdmin(admin.ModelAdmin, EventLinkMixin, ParticipantLinkMixin):  # type: ignore[type-arg]
    list_display = ["id", "event_link", "participant_link", "status", "team_name", "attended", "registered_at"]
    list_filter = ["status", "attended", "event__event_type"]
    search_fields = ["event__name", "participant__username", "participant__email", "team_name"]
    autocomplete_fields = ["event", "participant"]
    readonly_fields = ["id", "registered_at", "attended_at", "attendance_marked_by"]


@admin.register(models.MerchPurchase)
class MerchPurchaseAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    list_display = ["registration", "item", "variant", "quantity", "total_amount", "payment_status", "reviewed_at"]
    list_filter = ["payment_status", "stock_reserved"]
    search_fields = ["registration__participant__username", "item__name", "variant__label"]
    # Reviews go through the API so that stock and tickets stay consistent.
    readonly_fields = [
        "registration",
        "item",
        "variant",
        "quantity",
        "unit_price",
        "total_amount",
        "stock_reserved",
        "payment_status",
        "payment_proof",
        "payment_proof_uploaded_at",
        "reviewed_by",
        "reviewed_at",
        "review_comment",
        "finalized_at",
    ]


@admin.register(models.Ticket)
class TicketAdmin(admin.ModelAdmin, EventLinkMixin, ParticipantLinkMixin):  # type: ignore[type-arg]
    list_display = ["code", "event_link", "participant_link", "issued_at"]
    search_fields = ["code", "event__name", "participant__username"]
    readonly_fields = ["code", "registration", "participant", "event", "qr_payload", "issued_at"]
    date_hierarchy = "issued_at"


@admin.register(models.AttendanceAuditLog)
class AttendanceAuditLogAdmin(admin.ModelAdmin, EventLinkMixin):  # type: ignore[type-arg]
    list_display = ["occurred_at", "action", "event_link", "ticket_code", "scanner", "reason"]
    list_filter = ["action"]
    search_fields = ["ticket_code", "event__name", "reason"]
    date_hierarchy = "occurred_at"

    def has_add_permission(self, request: HttpRequest) -> bool:
        return False

    def has_change_permission(self, request: HttpRequest, obj: models.AttendanceAuditLog | None = None) -> bool:
        return False

    def has_delete_permission(self, request: HttpRequest, obj: models.AttendanceAuditLog | None = None) -> bool:
        return False
