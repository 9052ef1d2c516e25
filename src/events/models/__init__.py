from .attendance import AttendanceAuditLog
from .event import Event, EventQuerySet
from .merch import MerchItem, MerchPurchase, MerchVariant
from .registration import Registration, RegistrationQuerySet
from .ticket import Ticket

__all__ = [
    "AttendanceAuditLog",
    "Event",
    "EventQuerySet",
    "MerchItem",
    "MerchPurchase",
    "MerchVariant",
    "Registration",
    "RegistrationQuerySet",
    "Ticket",
]
