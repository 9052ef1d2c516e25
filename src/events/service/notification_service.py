"""Confirmation emails sent as a step of the registration and merchandise sagas.

Delivery is synchronous and strict: a failed send raises so the enclosing saga
compensates. The SMTP call is bounded by ``EMAIL_TIMEOUT``.
"""

import smtplib
import typing as t
from dataclasses import dataclass

import structlog
from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string
from django.utils.translation import gettext as _

from events.exceptions import DeliveryFailedError
from events.models import Event, Registration, Ticket

logger = structlog.get_logger(__name__)

EMAIL_DELIVERY_FAILED = "EMAIL_DELIVERY_FAILED"

FlowType = t.Literal["registration", "purchase"]


@dataclass(frozen=True)
class EmailDelivery:
    sent: bool
    recipient: str
    backend: str


def _flow_label(flow: FlowType) -> str:
    return _("Purchase Confirmation") if flow == "purchase" else _("Registration Confirmation")


def send_ticket_email(
    *,
    event: Event,
    registration: Registration,
    ticket: Ticket,
    flow: FlowType,
    failure_message: str | None = None,
) -> EmailDelivery:
    """Send the ticket confirmation to the registration's participant.

    Raises:
        DeliveryFailedError: if the participant has no address or the backend fails.
    """
    message = failure_message or _("Ticket email delivery failed. Registration reverted.")
    participant = registration.participant
    log = logger.bind(registration_id=str(registration.pk), ticket_code=ticket.code, flow=flow)
    if not participant.email:
        log.warning("ticket_email_missing_recipient")
        raise DeliveryFailedError(message, code=EMAIL_DELIVERY_FAILED)

    flow_label = _flow_label(flow)
    context = {
        "participant_name": participant.get_full_name() or participant.email,
        "flow_label": flow_label,
        "event": event,
        "registration": registration,
        "ticket": ticket,
        "purchase": getattr(registration, "merch_purchase", None) if event.is_merchandise else None,
        "qr_code_data_url": ticket.qr_payload.get("qr_code_data_url", ""),
    }
    email_msg = EmailMultiAlternatives(
        subject=f"[{settings.SITE_NAME}] {flow_label} - {event.name}",
        body=render_to_string("events/emails/ticket_confirmation.txt", context),
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=[participant.email],
    )
    email_msg.attach_alternative(render_to_string("events/emails/ticket_confirmation.html", context), "text/html")
    try:
        sent = email_msg.send(fail_silently=False)
    except (smtplib.SMTPException, OSError) as e:
        log.error("ticket_email_failed", error=str(e))
        raise DeliveryFailedError(message, code=EMAIL_DELIVERY_FAILED) from e
    if not sent:
        log.error("ticket_email_not_sent")
        raise DeliveryFailedError(message, code=EMAIL_DELIVERY_FAILED)
    log.info("ticket_email_sent")
    return EmailDelivery(sent=True, recipient=participant.email, backend=settings.EMAIL_BACKEND.rsplit(".", 1)[-1])
