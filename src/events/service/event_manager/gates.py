"""Gate classes for the admission check.

Each gate checks one condition and names the reason when it blocks. Gates are
composed by the EligibilityService, which either unions every reason (display)
or stops at the first one (admission).
"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING

from django.utils import timezone

from accounts.models import FestUser
from events import models

from .enums import Reasons

if TYPE_CHECKING:
    from .service import EligibilityService


class BaseEligibilityGate(abc.ABC):
    """Abstract Base Class for a composable admission check."""

    reason: Reasons

    def __init__(self, handler: EligibilityService) -> None:
        """Initialize the gate."""
        self.handler = handler
        self.user: FestUser = handler.user
        self.event: models.Event = handler.event

    @abc.abstractmethod
    def blocks(self) -> bool:
        """Return True if this gate blocks the caller."""

    def check(self) -> Reasons | None:
        """Return the gate's reason if it blocks, None to continue to the next gate."""
        return self.reason if self.blocks() else None


class EventStatusGate(BaseEligibilityGate):
    """Gate #1: Only PUBLISHED and ONGOING events accept registrations."""

    reason = Reasons.EVENT_NOT_OPEN

    def blocks(self) -> bool:
        """Check the lifecycle state."""
        return self.event.status not in models.Event.OPEN_STATUSES


class DeadlineGate(BaseEligibilityGate):
    """Gate #2: The registration deadline must not have passed."""

    reason = Reasons.DEADLINE_PASSED

    def blocks(self) -> bool:
        """Check the deadline against the current time."""
        deadline = self.event.registration_deadline
        return deadline is not None and timezone.now() > deadline


class ParticipantEligibilityGate(BaseEligibilityGate):
    """Gate #3: The caller's affiliation must match the event's eligibility."""

    reason = Reasons.NOT_ELIGIBLE

    def blocks(self) -> bool:
        """IIIT_ONLY admits IIIT participants, NON_IIIT_ONLY the complement."""
        if not self.user.is_participant:
            return True
        eligibility = self.event.eligibility
        if eligibility == models.Event.Eligibility.IIIT_ONLY:
            return self.user.role != FestUser.Role.IIIT_PARTICIPANT
        if eligibility == models.Event.Eligibility.NON_IIIT_ONLY:
            return self.user.role != FestUser.Role.NON_IIIT_PARTICIPANT
        return False


class CapacityGate(BaseEligibilityGate):
    """Gate #4: Confirmed registrations must stay below the limit."""

    reason = Reasons.REGISTRATION_FULL

    def blocks(self) -> bool:
        """Compare the confirmed count with the registration limit."""
        return self.handler.registration_count >= self.event.registration_limit


class DuplicateRegistrationGate(BaseEligibilityGate):
    """Gate #5: A participant registers at most once per event."""

    reason = Reasons.ALREADY_REGISTERED

    def blocks(self) -> bool:
        """Check for an existing registration in any status."""
        return self.handler.has_registration


class StockGate(BaseEligibilityGate):
    """Gate #6: Merchandise events need at least one variant in stock."""

    reason = Reasons.STOCK_EXHAUSTED

    def blocks(self) -> bool:
        """Only relevant for merchandise events."""
        return self.event.is_merchandise and not self.handler.has_stock


ELIGIBILITY_GATES: list[type[BaseEligibilityGate]] = [
    EventStatusGate,
    DeadlineGate,
    ParticipantEligibilityGate,
    CapacityGate,
    DuplicateRegistrationGate,
    StockGate,
]
