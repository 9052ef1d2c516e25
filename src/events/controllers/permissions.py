from django.http import HttpRequest
from django.utils.translation import gettext_lazy as _
from ninja_extra import ControllerBase
from ninja_extra.permissions import BasePermission

from events import models


class OrganizerOrAdminPermission(BasePermission):
    """Organizer and admin endpoints."""

    message = _("Only organizers and admins can access this endpoint.")

    def has_permission(self, request: HttpRequest, controller: ControllerBase) -> bool:
        """Organizers and admins only."""
        user = request.user
        return bool(user.is_authenticated and (user.is_organizer or user.is_fest_admin))  # type: ignore[union-attr]


class ParticipantPermission(BasePermission):
    """Endpoints through which participants join events."""

    message = _("Only participants can access this endpoint.")

    def has_permission(self, request: HttpRequest, controller: ControllerBase) -> bool:
        """Participants only."""
        user = request.user
        return bool(user.is_authenticated and user.is_participant)  # type: ignore[union-attr]


class ManageEventPermission(BasePermission):
    """The organizer who owns the event, or any admin."""

    message = _("You do not manage this event.")

    def has_permission(self, request: HttpRequest, controller: ControllerBase) -> bool:
        """Must implement abstract method. This is due to an error in Ninja Extra.

        This Method will be ignored, only has_object_permission will be called.
        """
        return True

    def has_object_permission(self, request: HttpRequest, controller: ControllerBase, obj: models.Event) -> bool:
        """Owner or admin."""
        user = request.user
        return obj.organizer_id == user.id or bool(user.is_fest_admin)  # type: ignore[union-attr]
