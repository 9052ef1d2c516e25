"""Admission control package.

This package provides the gate that decides whether a participant may register
for an event, and the manager that admits them under a row lock.
"""

from .enums import Reasons
from .manager import EventManager
from .service import EligibilityService
from .types import AdmissionBlockedError, EventEligibility

__all__ = [
    "Reasons",
    "EventEligibility",
    "AdmissionBlockedError",
    "EligibilityService",
    "EventManager",
]
