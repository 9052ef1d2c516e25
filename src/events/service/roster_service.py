"""Participant roster, CSV export and per-event analytics for organizers."""

import csv
import io
import typing as t
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

import structlog
from django.db.models import Count, QuerySet, Sum

from accounts.models import FestUser
from events.models import Event, MerchPurchase, Registration
from events.service import attendance_service

logger = structlog.get_logger(__name__)

RegistrationStatus = Registration.RegistrationStatus

ROSTER_OVERRIDE_REASON = "Attendance updated from participant roster"

ROSTER_CSV_HEADERS = (
    "Participant Name",
    "Email",
    "Registration Date",
    "Status",
    "Team Name",
    "Payment Amount",
    "Attendance",
    "Ticket ID",
)


@dataclass(frozen=True)
class EventAnalytics:
    registrations: int
    confirmed: int
    attendance: int
    attendance_rate: float
    merch_sales: int
    revenue: Decimal
    by_status: dict[str, int]
    team_completion_count: int
    team_completion_rate: float


def roster_queryset(event: Event) -> QuerySet[Registration]:
    """All registrations of the event with participant, ticket and order, newest first."""
    return Registration.objects.select_related("event", "participant", "ticket", "merch_purchase").filter(event=event)


def participant_name(registration: Registration) -> str:
    return registration.participant.display_name or "Unknown"


def payment_amount(registration: Registration) -> Decimal:
    """The order total for merchandise, the event's fee otherwise."""
    if hasattr(registration, "merch_purchase"):
        return registration.merch_purchase.total_amount
    return Decimal(registration.event.registration_fee or 0)


def ticket_code(registration: Registration) -> str | None:
    return registration.ticket.code if hasattr(registration, "ticket") else None


def roster_csv(registrations: t.Iterable[Registration]) -> str:
    """Render roster rows as CSV text with a header line."""
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(ROSTER_CSV_HEADERS)
    for registration in registrations:
        writer.writerow(
            [
                participant_name(registration),
                registration.participant.email,
                registration.registered_at.isoformat() if registration.registered_at else "",
                registration.status,
                registration.team_name,
                payment_amount(registration),
                "Present" if registration.attended else "Absent",
                ticket_code(registration) or "",
            ]
        )
    return output.getvalue()


def update_attendance(
    *, event: Event, scanner: FestUser, registration_id: UUID, attended: bool, reason: str = ""
) -> Registration:
    """Set one roster row's attendance; the change is audited like any manual override."""
    return attendance_service.manual_override(
        event=event,
        scanner=scanner,
        registration_id=registration_id,
        reason=(reason or "").strip() or ROSTER_OVERRIDE_REASON,
        attended=attended,
    )


def _rate(part: int, total: int) -> float:
    return round(part / total * 100, 2) if total else 0.0


def event_analytics(event: Event) -> EventAnalytics:
    """Registration, attendance and revenue totals of an event.

    Revenue counts approved orders for merchandise events and the registration
    fee of every confirmed registration otherwise.
    """
    registrations = Registration.objects.filter(event=event)
    by_status = {status: 0 for status in RegistrationStatus.values}
    for row in registrations.order_by().values("status").annotate(count=Count("id")):
        by_status[row["status"]] = row["count"]
    total = sum(by_status.values())
    confirmed = sum(by_status[status] for status in Registration.CONFIRMED_STATUSES)
    attended = registrations.filter(attended=True).count()
    team_completions = registrations.filter(status=RegistrationStatus.COMPLETED).exclude(team_name="").count()

    merch_sales = 0
    if event.is_merchandise:
        approved = MerchPurchase.objects.filter(
            registration__event=event, payment_status=MerchPurchase.PaymentStatus.APPROVED
        ).aggregate(orders=Count("id"), revenue=Sum("total_amount"))
        merch_sales = approved["orders"]
        revenue = approved["revenue"] or Decimal("0")
    else:
        revenue = Decimal(event.registration_fee or 0) * confirmed

    logger.debug("event_analytics_computed", event_id=str(event.pk), registrations=total)
    return EventAnalytics(
        registrations=total,
        confirmed=confirmed,
        attendance=attended,
        attendance_rate=_rate(attended, total),
        merch_sales=merch_sales,
        revenue=revenue,
        by_status=by_status,
        team_completion_count=team_completions,
        team_completion_rate=_rate(team_completions, total),
    )
