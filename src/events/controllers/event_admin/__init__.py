"""Organizer controllers package.

Event management, the merchandise review queue, attendance and the participant roster each get
their own controller.
"""

from .attendance import EventAdminAttendanceController
from .core import EventAdminCoreController
from .merch import EventAdminMerchController
from .participants import EventAdminParticipantsController

EVENT_ADMIN_CONTROLLERS: list[type] = [
    EventAdminCoreController,
    EventAdminMerchController,
    EventAdminAttendanceController,
    EventAdminParticipantsController,
]

__all__ = [
    "EventAdminCoreController",
    "EventAdminMerchController",
    "EventAdminAttendanceController",
    "EventAdminParticipantsController",
    "EVENT_ADMIN_CONTROLLERS",
]
