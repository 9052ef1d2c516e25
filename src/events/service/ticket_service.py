"""Ticket issuance: unique credential ids and scannable QR payloads."""

import base64
import secrets
import time
import typing as t
from io import BytesIO
from uuid import UUID

import orjson
import qrcode
import structlog
from django.conf import settings
from django.db.models import QuerySet
from django.utils.translation import gettext as _

from accounts.models import FestUser
from events.exceptions import NotFoundError, PermissionDeniedError, StorageError
from events.models import Registration, Ticket

logger = structlog.get_logger(__name__)

TICKET_CODE_PREFIX = "TKT"


def generate_ticket_code() -> str:
    """Return a credential id not used by any stored ticket.

    Raises:
        StorageError: if no free id was found within the configured number of probes.
    """
    for attempt in range(settings.TICKET_ID_MAX_ATTEMPTS):
        code = f"{TICKET_CODE_PREFIX}-{int(time.time() * 1000)}-{1000 + secrets.randbelow(9000)}"
        if not Ticket.objects.filter(code=code).exists():
            return code
        logger.debug("ticket_code_collision", attempt=attempt, code=code)
    logger.error("ticket_code_exhausted", attempts=settings.TICKET_ID_MAX_ATTEMPTS)
    raise StorageError(_("Could not generate ticket id."), code="TICKET_ID_EXHAUSTED")


def build_credential(code: str, registration: Registration) -> dict[str, str]:
    """The canonical fields encoded in the ticket's QR code."""
    return {
        "ticket_id": code,
        "registration_id": str(registration.pk),
        "participant_id": str(registration.participant_id),
        "event_id": str(registration.event_id),
    }


def render_qr_data_url(credential: dict[str, t.Any]) -> str:
    """Render the credential as a PNG QR code and return it as a data URL."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=settings.TICKET_QR_BOX_SIZE,
        border=1,
    )
    qr.add_data(orjson.dumps(credential).decode("utf-8"))
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffered = BytesIO()
    img.save(buffered, "PNG")
    encoded = base64.b64encode(buffered.getvalue()).decode("utf-8")
    return f"data:image/png;base64,{encoded}"


def issue_ticket(registration: Registration) -> Ticket:
    """Issue the ticket for a registration.

    The QR image is rendered before anything is written, so a rendering failure
    leaves no ticket behind.
    """
    code = generate_ticket_code()
    credential = build_credential(code, registration)
    qr_code_data_url = render_qr_data_url(credential)
    ticket = Ticket.objects.create(
        code=code,
        registration=registration,
        participant_id=registration.participant_id,
        event_id=registration.event_id,
        qr_payload={**credential, "qr_code_data_url": qr_code_data_url},
    )
    logger.info("ticket_issued", ticket_code=code, registration_id=str(registration.pk))
    return ticket


def delete_ticket(ticket_id: UUID) -> None:
    """Compensation: remove a ticket. Deleting a missing ticket is a no-op."""
    deleted, _details = Ticket.objects.filter(pk=ticket_id).delete()
    logger.info("ticket_deleted", ticket_id=str(ticket_id), deleted=bool(deleted))


def can_view_ticket(user: FestUser, ticket: Ticket) -> bool:
    """Owner, the event's organizer, or any admin."""
    if user.is_fest_admin:
        return True
    if ticket.participant_id == user.pk:
        return True
    return user.is_organizer and ticket.event.organizer_id == user.pk


def get_ticket_for_viewer(code: str, user: FestUser) -> Ticket:
    """Fetch a ticket by credential id on behalf of a user.

    Raises:
        NotFoundError: if no ticket has this code.
        PermissionDeniedError: if the user is neither owner, organizer nor admin.
    """
    ticket = (
        Ticket.objects.select_related("participant", "event", "event__organizer", "registration")
        .filter(code=code)
        .first()
    )
    if ticket is None:
        raise NotFoundError(_("Ticket not found."))
    if not can_view_ticket(user, ticket):
        raise PermissionDeniedError(_("You are not allowed to view this ticket."))
    return ticket


def list_participant_tickets(user: FestUser) -> QuerySet[Ticket]:
    """Tickets owned by the participant, newest first."""
    return Ticket.objects.select_related("event", "registration").filter(participant=user)
