from uuid import UUID

from ninja_extra import api_controller, route

from common.authentication import FestJWTAuth
from common.schema import ErrorResponse
from common.throttling import ScanThrottle
from events import models, schema
from events.controllers.permissions import ManageEventPermission, OrganizerOrAdminPermission
from events.service import attendance_service

from .base import EventAdminBaseController


@api_controller(
    "/organizer/events/{event_id}/attendance",
    auth=FestJWTAuth(),
    permissions=[OrganizerOrAdminPermission(), ManageEventPermission()],
    tags=["Organizer Attendance"],
)
class EventAdminAttendanceController(EventAdminBaseController):
    """Ticket scanning at the venue and attendance corrections."""

    @route.post(
        "/scan",
        url_name="scan_attendance",
        response={200: schema.AttendanceRegistrationSchema, 400: ErrorResponse, 409: ErrorResponse},
        throttle=ScanThrottle(),
    )
    def scan(self, event_id: UUID, payload: schema.ScanSchema) -> models.Registration:
        """Mark attendance from a scanned ticket QR payload.

        The payload must name the ticket, registration and event. Invalid and duplicate scans
        are rejected and recorded in the audit log.
        """
        return attendance_service.scan(event=self.get_one(event_id), scanner=self.user(), qr_payload=payload.qr_payload)

    @route.post(
        "/manual",
        url_name="manual_attendance_override",
        response={200: schema.AttendanceRegistrationSchema, 400: ErrorResponse, 404: ErrorResponse},
    )
    def manual_override(self, event_id: UUID, payload: schema.ManualOverrideSchema) -> models.Registration:
        """Set a registration's attendance by hand. A reason is required and recorded."""
        return attendance_service.manual_override(
            event=self.get_one(event_id),
            scanner=self.user(),
            registration_id=payload.registration_id,
            reason=payload.reason,
            attended=payload.attended,
        )

    @route.get("/summary", url_name="attendance_summary", response=schema.AttendanceSummarySchema)
    def summary(self, event_id: UUID) -> dict:
        """Live totals and the most recent audit entries."""
        event = self.get_one(event_id)
        summary = attendance_service.live_summary(event)
        return {
            "event_id": event.pk,
            "total_registrations": summary.total_registrations,
            "attended_count": summary.attended_count,
            "unattended_count": summary.unattended_count,
            "recent_logs": summary.recent_logs,
        }
