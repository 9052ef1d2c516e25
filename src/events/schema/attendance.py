"""Attendance scan, override and summary schemas."""

import typing as t
from uuid import UUID

from ninja import Schema
from pydantic import AwareDatetime

from accounts.models import FestUser
from events.models import AttendanceAuditLog, Registration


class ScanSchema(Schema):
    qr_payload: dict[str, t.Any] | str


class ManualOverrideSchema(Schema):
    registration_id: UUID
    reason: str = ""
    attended: bool = True


class AttendeeSchema(Schema):
    id: UUID
    name: str
    email: str

    @staticmethod
    def resolve_name(obj: FestUser) -> str:
        return obj.display_name or "Unknown"


class AttendanceRegistrationSchema(Schema):
    registration_id: UUID
    attended: bool
    attended_at: AwareDatetime | None = None
    participant: AttendeeSchema

    @staticmethod
    def resolve_registration_id(obj: Registration) -> UUID:
        return obj.id


class ScannerSchema(Schema):
    id: UUID
    email: str
    role: FestUser.Role


class AuditLogSchema(Schema):
    id: int
    action: AttendanceAuditLog.Action
    reason: str
    ticket_code: str
    registration_id: UUID | None = None
    occurred_at: AwareDatetime
    scanner: ScannerSchema


class AttendanceSummarySchema(Schema):
    event_id: UUID
    total_registrations: int
    attended_count: int
    unattended_count: int
    recent_logs: list[AuditLogSchema]
