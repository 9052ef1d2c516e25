import typing as t
from uuid import UUID

from django.core.files.uploadedfile import UploadedFile

from common.controllers import UserAwareController
from events import models


class EventPublicBaseController(UserAwareController):
    """Base controller for participant-facing event endpoints.

    Provides common methods for retrieving event querysets and instances.
    Subclasses should be decorated with @api_controller to register routes.
    """

    def get_queryset(self) -> models.event.EventQuerySet:
        """Events past DRAFT whose organizer is active."""
        return models.Event.objects.visible_to_participants().with_organizer().with_merch()

    def get_one(self, event_id: UUID) -> models.Event:
        """Wrapper helper."""
        return t.cast(models.Event, self.get_object_or_exception(self.get_queryset(), pk=event_id))

    def uploaded_files(self) -> dict[str, UploadedFile]:
        """Files of a multipart request, by part name.

        Django Ninja doesn't populate File parameters when using Form[Schema].
        """
        request = self.context.request  # type: ignore[union-attr]
        return {name: request.FILES[name] for name in request.FILES}
