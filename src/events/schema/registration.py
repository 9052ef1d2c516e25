"""Registration, ticket and registration file schemas."""

import typing as t
from uuid import UUID

from ninja import Schema
from pydantic import AwareDatetime, Field

from common.schema import StrippedString
from events.models import Registration, Ticket


class RegistrationSchema(Schema):
    id: UUID
    event_id: UUID
    participant_id: UUID
    status: Registration.RegistrationStatus
    team_name: str
    responses: dict[str, t.Any]
    attended: bool
    attended_at: AwareDatetime | None = None
    registered_at: AwareDatetime


class TicketSchema(Schema):
    code: str
    event_id: UUID
    event_name: str
    registration_id: UUID
    participant_id: UUID
    issued_at: AwareDatetime
    credential: dict[str, str]
    qr_code_data_url: str

    @staticmethod
    def resolve_event_name(obj: Ticket) -> str:
        return obj.event.name

    @staticmethod
    def resolve_credential(obj: Ticket) -> dict[str, str]:
        return {key: value for key, value in obj.qr_payload.items() if key != "qr_code_data_url"}

    @staticmethod
    def resolve_qr_code_data_url(obj: Ticket) -> str:
        return str(obj.qr_payload.get("qr_code_data_url", ""))


class RegistrationFormSchema(Schema):
    """Multipart registration fields; attached files are matched to file fields by name."""

    responses: str = Field("", description="JSON object keyed by form field id")
    team_name: StrippedString = ""


class RegistrationResultSchema(Schema):
    registration: RegistrationSchema
    ticket_id: str
    email_sent: bool


class RegistrationFileSchema(Schema):
    field_id: str
    file_id: UUID
    file_name: str
    mime_type: str
    size: int
