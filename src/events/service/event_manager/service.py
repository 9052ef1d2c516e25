"""EligibilityService for checking whether a caller may register for an event."""

from accounts.models import FestUser
from events import models

from .enums import Reasons
from .gates import ELIGIBILITY_GATES, BaseEligibilityGate
from .types import AdmissionBlockedError, EventEligibility


class EligibilityService:
    """The Eligibility Service Class.

    Reads the counts the gates need once, then evaluates the gates in memory.
    Counts are always re-read from the database; nothing is cached across requests.
    """

    def __init__(self, user: FestUser, event: models.Event) -> None:
        """Initialize the service and load the state the gates depend on."""
        self.user = user
        self.event = event
        self.registration_count = models.Registration.objects.filter(event=event).confirmed().count()
        self.has_registration = models.Registration.objects.filter(event=event, participant=user).exists()
        self.has_stock = (
            models.MerchVariant.objects.filter(item__event=event, stock_qty__gt=0).exists()
            if event.is_merchandise
            else True
        )
        self._gates: list[BaseEligibilityGate] = [gate(self) for gate in ELIGIBILITY_GATES]

    def blocking_reasons(self) -> list[Reasons]:
        """Evaluate every gate and return the union of blocking reasons, in gate order."""
        reasons: list[Reasons] = []
        for gate in self._gates:
            reason = gate.check()
            if reason is not None and reason not in reasons:
                reasons.append(reason)
        return reasons

    def first_blocking_reason(self) -> Reasons | None:
        """Evaluate the gates in order and stop at the first one that blocks."""
        for gate in self._gates:
            if reason := gate.check():
                return reason
        return None

    def check_eligibility(self) -> EventEligibility:
        """Display mode: report every reason at once."""
        reasons = self.blocking_reasons()
        return EventEligibility(
            allowed=not reasons,
            event_id=self.event.pk,
            reasons=reasons,
            registration_count=self.registration_count,
            registration_limit=self.event.registration_limit,
        )

    def assert_admissible(self) -> None:
        """Admission mode: fail fast on the first blocking gate.

        Raises:
            AdmissionBlockedError
        """
        if reason := self.first_blocking_reason():
            raise AdmissionBlockedError(reason, event_id=self.event.pk)
