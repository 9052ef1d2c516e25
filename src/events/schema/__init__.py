"""Events schema package.

Schemas live in modules that mirror the services they serve and are re-exported here.
"""

from .attendance import (
    AttendanceRegistrationSchema,
    AttendanceSummarySchema,
    AttendeeSchema,
    AuditLogSchema,
    ManualOverrideSchema,
    ScannerSchema,
    ScanSchema,
)
from .event import (
    EventCreateSchema,
    EventDetailSchema,
    EventEditSchema,
    EventInListSchema,
    MerchItemCreateSchema,
    MerchItemSchema,
    MerchVariantCreateSchema,
    MerchVariantSchema,
    OrganizerSchema,
    ParticipantEventDetailSchema,
)
from .merch import (
    MerchOrderSchema,
    MerchPurchaseSchema,
    OrderCreateSchema,
    OrderParticipantSchema,
    PaymentProofSchema,
    PurchaseCreateSchema,
    PurchaseResultSchema,
    ReviewOrderSchema,
    ReviewResultSchema,
)
from .registration import (
    RegistrationFileSchema,
    RegistrationFormSchema,
    RegistrationResultSchema,
    RegistrationSchema,
    TicketSchema,
)
from .roster import EventAnalyticsSchema, ParticipantAttendanceSchema, ParticipantRowSchema

__all__ = [
    "AttendanceRegistrationSchema",
    "AttendanceSummarySchema",
    "AttendeeSchema",
    "AuditLogSchema",
    "EventAnalyticsSchema",
    "EventCreateSchema",
    "EventDetailSchema",
    "EventEditSchema",
    "EventInListSchema",
    "ManualOverrideSchema",
    "MerchItemCreateSchema",
    "MerchItemSchema",
    "MerchOrderSchema",
    "MerchPurchaseSchema",
    "MerchVariantCreateSchema",
    "MerchVariantSchema",
    "OrderCreateSchema",
    "OrderParticipantSchema",
    "OrganizerSchema",
    "ParticipantAttendanceSchema",
    "ParticipantEventDetailSchema",
    "ParticipantRowSchema",
    "PaymentProofSchema",
    "PurchaseCreateSchema",
    "PurchaseResultSchema",
    "RegistrationFileSchema",
    "RegistrationFormSchema",
    "RegistrationResultSchema",
    "RegistrationSchema",
    "ReviewOrderSchema",
    "ReviewResultSchema",
    "ScanSchema",
    "ScannerSchema",
    "TicketSchema",
]
