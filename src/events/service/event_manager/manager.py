"""EventManager for admitting participants to events."""

import typing as t

import structlog
from django.db import IntegrityError, transaction

from accounts.models import FestUser
from events import models

from .enums import Reasons
from .service import EligibilityService
from .types import AdmissionBlockedError, EventEligibility

logger = structlog.get_logger(__name__)

T = t.TypeVar("T")


class EventManager:
    """The Event Manager Class.

    It is responsible for admitting a participant to an event, making sure the
    gate passes and that capacity and dedupe hold when the registration is written.
    """

    def __init__(self, user: FestUser, event: models.Event) -> None:
        """Initialize the EventManager."""
        self.user = user
        self.event = event

    def check_eligibility(self) -> EventEligibility:
        """Every blocking reason for display purposes."""
        return EligibilityService(self.user, self.event).check_eligibility()

    def assert_admissible(self) -> None:
        """Fail-fast pre-check, run before any side effect of a saga.

        Raises:
            AdmissionBlockedError
        """
        EligibilityService(self.user, self.event).assert_admissible()

    def admit(self, create: t.Callable[[models.Event], T]) -> T:
        """Re-check the gate under a lock on the event row and run ``create``.

        The lock serializes concurrent admissions to the same event, so the
        capacity count and dedupe check cannot both pass for two writers. The
        unique (participant, event) constraint backs the dedupe check up.

        Raises:
            AdmissionBlockedError
        """
        with transaction.atomic():
            locked_event = models.Event.objects.select_for_update().get(pk=self.event.pk)
            EligibilityService(self.user, locked_event).assert_admissible()
            try:
                with transaction.atomic():
                    result = create(locked_event)
            except IntegrityError as e:
                logger.warning(
                    "admission_dedupe_race_lost", event_id=str(self.event.pk), participant_id=str(self.user.pk)
                )
                raise AdmissionBlockedError(Reasons.ALREADY_REGISTERED, event_id=self.event.pk) from e
        return result
