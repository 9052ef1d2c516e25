"""Participant roster and analytics schemas."""

from decimal import Decimal
from uuid import UUID

from ninja import Schema
from pydantic import AwareDatetime, StrictBool

from events.models import Registration
from events.service import roster_service


class ParticipantRowSchema(Schema):
    registration_id: UUID
    participant_id: UUID
    participant_name: str
    email: str
    registered_at: AwareDatetime
    status: Registration.RegistrationStatus
    team_name: str
    payment_amount: Decimal
    attended: bool
    attended_at: AwareDatetime | None = None
    ticket_id: str | None = None

    @staticmethod
    def resolve_registration_id(obj: Registration) -> UUID:
        return obj.id

    @staticmethod
    def resolve_participant_name(obj: Registration) -> str:
        return roster_service.participant_name(obj)

    @staticmethod
    def resolve_email(obj: Registration) -> str:
        return obj.participant.email

    @staticmethod
    def resolve_payment_amount(obj: Registration) -> Decimal:
        return roster_service.payment_amount(obj)

    @staticmethod
    def resolve_ticket_id(obj: Registration) -> str | None:
        return roster_service.ticket_code(obj)


class ParticipantAttendanceSchema(Schema):
    attended: StrictBool
    reason: str = ""


class EventAnalyticsSchema(Schema):
    event_id: UUID
    registrations: int
    confirmed: int
    attendance: int
    attendance_rate: float
    merch_sales: int
    revenue: Decimal
    by_status: dict[str, int]
    team_completion_count: int
    team_completion_rate: float
