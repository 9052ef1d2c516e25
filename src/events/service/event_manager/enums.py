"""Enums for the admission gate."""

from enum import StrEnum

from django.utils.translation import gettext_noop


class Reasons(StrEnum):
    """Named reasons why a participant cannot register for an event.

    The order of declaration is the order in which the admission path checks them.
    """

    EVENT_NOT_OPEN = "EVENT_NOT_OPEN"
    DEADLINE_PASSED = "DEADLINE_PASSED"
    NOT_ELIGIBLE = "NOT_ELIGIBLE"
    REGISTRATION_FULL = "REGISTRATION_FULL"
    ALREADY_REGISTERED = "ALREADY_REGISTERED"
    STOCK_EXHAUSTED = "STOCK_EXHAUSTED"

    @property
    def message(self) -> str:
        """Untranslated human readable message; translate at the call site."""
        return REASON_MESSAGES[self]

    @property
    def status_code(self) -> int:
        """HTTP status the reason maps to when it blocks an admission."""
        return REASON_STATUS_CODES.get(self, 400)


REASON_MESSAGES: dict[Reasons, str] = {
    Reasons.EVENT_NOT_OPEN: gettext_noop("Event is not open for registration."),
    Reasons.DEADLINE_PASSED: gettext_noop("Registration deadline has passed."),
    Reasons.NOT_ELIGIBLE: gettext_noop("You are not eligible for this event."),
    Reasons.REGISTRATION_FULL: gettext_noop("Registration limit reached."),
    Reasons.ALREADY_REGISTERED: gettext_noop("You are already registered for this event."),
    Reasons.STOCK_EXHAUSTED: gettext_noop("All merchandise for this event is out of stock."),
}

REASON_STATUS_CODES: dict[Reasons, int] = {
    Reasons.NOT_ELIGIBLE: 403,
    Reasons.ALREADY_REGISTERED: 409,
}
