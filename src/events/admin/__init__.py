"""Events admin module.

Django autodiscover imports this package, which registers the admin classes of each submodule.
"""

from events.admin.event import EventAdmin, MerchItemAdmin
from events.admin.registration import AttendanceAuditLogAdmin, MerchPurchaseAdmin, RegistrationAdmin, TicketAdmin

__all__ = [
    "AttendanceAuditLogAdmin",
    "EventAdmin",
    "MerchItemAdmin",
    "MerchPurchaseAdmin",
    "RegistrationAdmin",
    "TicketAdmin",
]
