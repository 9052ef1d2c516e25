"""Discord announcements posted when an organizer publishes an event."""

from datetime import datetime

import httpx
import structlog
from django.conf import settings
from django.utils import timezone
from django.utils.translation import gettext as _

from events.exceptions import DeliveryFailedError, FestValidationError
from events.models import Event

logger = structlog.get_logger(__name__)


def validate_webhook_url(url: str) -> httpx.URL:
    """Only absolute https webhook URLs are accepted.

    Raises:
        FestValidationError: if the URL cannot be parsed or is not https.
    """
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as e:
        raise FestValidationError(_("Invalid Discord webhook URL"), field="discord_webhook_url") from e
    if parsed.scheme != "https" or not parsed.host:
        raise FestValidationError(_("Discord webhook URL must be https"), field="discord_webhook_url")
    return parsed


def build_announcement(event: Event) -> str:
    """The message body posted to the channel."""

    def _fmt(value: datetime) -> str:
        return timezone.localtime(value).strftime("%d %b %Y, %H:%M")

    return "\n".join(
        [
            f"New event published by {event.organizer.display_name or 'Organizer'}",
            f"Name: {event.name}",
            f"Type: {event.event_type}",
            f"Eligibility: {event.eligibility}",
            f"Registration Deadline: {_fmt(event.registration_deadline)}",
            f"Start: {_fmt(event.start_date)}",
            f"End: {_fmt(event.end_date)}",
        ]
    )


def announce_event(event: Event) -> bool:
    """Post the event to the organizer's Discord webhook, if one is configured.

    Returns:
        True if an announcement was delivered, False if the organizer has no webhook.

    Raises:
        FestValidationError: if the configured webhook URL is invalid.
        DeliveryFailedError: if Discord could not be reached in time or rejected the message.
    """
    url = (event.organizer.discord_webhook_url or "").strip()
    if not url:
        return False
    validate_webhook_url(url)

    try:
        response = httpx.post(
            url, json={"content": build_announcement(event)}, timeout=settings.DISCORD_WEBHOOK_TIMEOUT
        )
        response.raise_for_status()
    except (httpx.HTTPStatusError, httpx.RequestError, httpx.TimeoutException) as e:
        logger.warning("discord_announcement_failed", event_id=str(event.pk), error=str(e))
        raise DeliveryFailedError(
            _("Discord announcement failed. Event was not published."), code="ANNOUNCEMENT_FAILED"
        ) from e

    logger.info("discord_announcement_sent", event_id=str(event.pk), response_status=response.status_code)
    return True
