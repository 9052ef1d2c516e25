import csv
import io
import typing as t
from decimal import Decimal

import pytest

from accounts.models import FestUser
from events.models import AttendanceAuditLog, Event, MerchVariant, Registration, Ticket
from events.service import merch_service, roster_service, ticket_service

pytestmark = pytest.mark.django_db

RegistrationStatus = Registration.RegistrationStatus


@pytest.fixture
def quiz(event_factory: t.Callable[..., Event]) -> Event:
    return event_factory(name="Quiz Night", registration_fee=Decimal("150.00"))


def test_roster_csv(quiz: Event, participant: FestUser, other_participant: FestUser) -> None:
    first = Registration.objects.create(participant=participant, event=quiz, team_name="Owls, Inc.")
    ticket = ticket_service.issue_ticket(first)
    Registration.objects.create(participant=other_participant, event=quiz, attended=True)

    text = roster_service.roster_csv(roster_service.roster_queryset(quiz))

    header, *rows = list(csv.reader(io.StringIO(text)))
    assert tuple(header) == roster_service.ROSTER_CSV_HEADERS
    by_email = {row[1]: row for row in rows}
    assert by_email[participant.email] == [
        participant.display_name,
        participant.email,
        first.registered_at.isoformat(),
        "REGISTERED",
        "Owls, Inc.",
        "150.00",
        "Absent",
        ticket.code,
    ]
    assert by_email[other_participant.email][6] == "Present"
    assert by_email[other_participant.email][7] == ""


def test_roster_uses_order_total_for_merchandise(
    participant: FestUser, merch_event: Event, hoodie_variant: MerchVariant
) -> None:
    merch_service.purchase_merchandise(
        participant=participant, event=merch_event, item_id="hoodie", variant_id="m-black", quantity=2
    )

    registration = roster_service.roster_queryset(merch_event).get()

    assert roster_service.payment_amount(registration) == Decimal("998.00")
    assert roster_service.ticket_code(registration) == Ticket.objects.get().code


def test_update_attendance_is_audited(organizer: FestUser, published_event: Event, registration: Registration) -> None:
    marked = roster_service.update_attendance(
        event=published_event, scanner=organizer, registration_id=registration.pk, attended=True
    )
    unmarked = roster_service.update_attendance(
        event=published_event,
        scanner=organizer,
        registration_id=registration.pk,
        attended=False,
        reason="Left early",
    )

    assert marked.attended is True
    assert unmarked.attended is False
    reasons = list(AttendanceAuditLog.objects.order_by("id").values_list("reason", flat=True))
    assert reasons == [roster_service.ROSTER_OVERRIDE_REASON, "Left early"]


def test_event_analytics(
    quiz: Event, participant: FestUser, other_participant: FestUser, iiit_participant: FestUser
) -> None:
    Registration.objects.create(participant=participant, event=quiz, attended=True)
    Registration.objects.create(
        participant=other_participant, event=quiz, status=RegistrationStatus.COMPLETED, team_name="Owls"
    )
    Registration.objects.create(participant=iiit_participant, event=quiz, status=RegistrationStatus.CANCELLED)

    analytics = roster_service.event_analytics(quiz)

    assert analytics.registrations == 3
    assert analytics.confirmed == 2
    assert analytics.attendance == 1
    assert analytics.attendance_rate == 33.33
    assert analytics.by_status == {"REGISTERED": 1, "CANCELLED": 1, "REJECTED": 0, "COMPLETED": 1}
    assert analytics.team_completion_count == 1
    assert analytics.team_completion_rate == 33.33
    assert analytics.merch_sales == 0
    assert analytics.revenue == Decimal("300.00")


def test_merchandise_analytics_count_approved_orders(
    participant: FestUser, other_participant: FestUser, merch_event: Event, hoodie_variant: MerchVariant
) -> None:
    merch_service.purchase_merchandise(
        participant=participant, event=merch_event, item_id="hoodie", variant_id="m-black", quantity=1
    )
    merch_service.place_order(
        participant=other_participant, event=merch_event, item_id="hoodie", variant_id="m-black", quantity=2
    )

    analytics = roster_service.event_analytics(merch_event)

    assert analytics.registrations == 2
    assert analytics.merch_sales == 1
    assert analytics.revenue == Decimal("499.00")


def test_analytics_of_an_empty_event(quiz: Event) -> None:
    analytics = roster_service.event_analytics(quiz)

    assert analytics.registrations == 0
    assert analytics.attendance_rate == 0.0
    assert analytics.team_completion_rate == 0.0
    assert analytics.revenue == Decimal("0")
