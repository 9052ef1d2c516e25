from unittest.mock import patch

import pytest

from accounts.models import FestUser
from events.exceptions import NotFoundError, PermissionDeniedError, StorageError
from events.models import Registration, Ticket
from events.service import ticket_service

pytestmark = pytest.mark.django_db


def test_issue_ticket_builds_credential(registration: Registration) -> None:
    ticket = ticket_service.issue_ticket(registration)

    assert ticket.participant_id == registration.participant_id
    assert ticket.event_id == registration.event_id
    assert ticket.qr_payload["ticket_id"] == ticket.code
    assert ticket.qr_payload["registration_id"] == str(registration.pk)
    assert ticket.qr_payload["participant_id"] == str(registration.participant_id)
    assert ticket.qr_payload["event_id"] == str(registration.event_id)
    assert ticket.qr_payload["qr_code_data_url"].startswith("data:image/png;base64,")


def test_ticket_codes_follow_the_credential_format() -> None:
    code = ticket_service.generate_ticket_code()

    prefix, millis, suffix = code.split("-")
    assert prefix == "TKT"
    assert millis.isdigit()
    assert 1000 <= int(suffix) <= 9999


def test_code_generation_gives_up_after_collisions() -> None:
    with patch("events.service.ticket_service.Ticket.objects.filter") as mock_filter:
        mock_filter.return_value.exists.return_value = True
        with pytest.raises(StorageError) as exc_info:
            ticket_service.generate_ticket_code()

    assert exc_info.value.code == "TICKET_ID_EXHAUSTED"


def test_qr_failure_leaves_no_ticket(registration: Registration) -> None:
    with patch("events.service.ticket_service.render_qr_data_url", side_effect=ValueError("bad image")):
        with pytest.raises(ValueError):
            ticket_service.issue_ticket(registration)

    assert not Ticket.objects.exists()


def test_delete_ticket_is_idempotent(ticket: Ticket) -> None:
    ticket_service.delete_ticket(ticket.pk)
    ticket_service.delete_ticket(ticket.pk)

    assert not Ticket.objects.exists()


def test_get_ticket_for_viewer(
    ticket: Ticket,
    participant: FestUser,
    other_participant: FestUser,
    organizer: FestUser,
    other_organizer: FestUser,
    admin_user: FestUser,
) -> None:
    for user in (participant, organizer, admin_user):
        assert ticket_service.get_ticket_for_viewer(ticket.code, user) == ticket
    for user in (other_participant, other_organizer):
        with pytest.raises(PermissionDeniedError):
            ticket_service.get_ticket_for_viewer(ticket.code, user)
    with pytest.raises(NotFoundError):
        ticket_service.get_ticket_for_viewer("TKT-0-0000", participant)


def test_list_participant_tickets(ticket: Ticket, participant: FestUser, other_participant: FestUser) -> None:
    assert list(ticket_service.list_participant_tickets(participant)) == [ticket]
    assert not ticket_service.list_participant_tickets(other_participant).exists()
