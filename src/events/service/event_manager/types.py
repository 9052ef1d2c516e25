"""Types and exceptions for the admission gate."""

import uuid

from django.utils.translation import gettext as _
from pydantic import BaseModel

from events.exceptions import FestError

from .enums import Reasons


class EventEligibility(BaseModel):
    """Result of evaluating every gate for a caller on an event."""

    allowed: bool
    event_id: uuid.UUID
    reasons: list[Reasons] = []
    registration_count: int = 0
    registration_limit: int = 0


class AdmissionBlockedError(FestError):
    """Raised when the admission path hits the first blocking gate."""

    def __init__(self, reason: Reasons, event_id: uuid.UUID) -> None:
        """Initialize the error with the blocking reason."""
        super().__init__(_(reason.message), code=reason.value)
        self.reason = reason
        self.event_id = event_id
        self.status_code = reason.status_code
