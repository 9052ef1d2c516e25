"""Event lifecycle: creation, state-dependent edits, deletion and status transitions.

DRAFT -> PUBLISHED -> ONGOING -> CLOSED -> COMPLETED, with CLOSED reachable from
PUBLISHED and COMPLETED reachable from ONGOING. Transitions never skip or reverse.
"""

import typing as t
from datetime import datetime

import structlog
from django.db import transaction
from django.db.models import QuerySet
from django.utils.text import slugify
from django.utils.translation import gettext as _

from accounts.models import FestUser
from events.exceptions import ConflictError, FestValidationError, NotFoundError, PermissionDeniedError
from events.form_schema import dump_form_schema, parse_form_schema
from events.models import Event, MerchItem, MerchVariant
from events.schema import EventCreateSchema, EventEditSchema, MerchItemCreateSchema
from events.service import announcement_service, update_db_instance

logger = structlog.get_logger(__name__)

EventStatus = Event.EventStatus

PUBLISHED_EDITABLE_FIELDS = frozenset(
    {"description", "tags", "registration_deadline", "registration_limit", "custom_form_schema"}
)

TRANSITIONS: dict[str, tuple[tuple[str, ...], str]] = {
    "publish": ((EventStatus.DRAFT,), EventStatus.PUBLISHED),
    "start": ((EventStatus.PUBLISHED,), EventStatus.ONGOING),
    "close": ((EventStatus.PUBLISHED, EventStatus.ONGOING), EventStatus.CLOSED),
    "complete": ((EventStatus.ONGOING, EventStatus.CLOSED), EventStatus.COMPLETED),
}


def assert_owner(user: FestUser, event: Event) -> None:
    """Lifecycle changes are reserved to the organizer who owns the event."""
    if event.organizer_id != user.pk:
        raise PermissionDeniedError(_("Only the organizer of this event can do this."))


def get_managed_event(user: FestUser, event_id: t.Any) -> Event:
    """An event the user may manage (own events, or any event for admins).

    Raises:
        NotFoundError: if the event does not exist or is outside the user's reach.
    """
    event = Event.objects.for_organizer(user).with_organizer().with_merch().filter(pk=event_id).first()
    if event is None:
        raise NotFoundError(_("Event not found."))
    return event


def list_managed_events(user: FestUser) -> QuerySet[Event]:
    return Event.objects.for_organizer(user).with_organizer().with_merch().order_by("-created_at")


def assert_dates_ordered(deadline: datetime, start: datetime, end: datetime) -> None:
    """Raises FestValidationError unless deadline <= start <= end."""
    if deadline > start:
        raise FestValidationError(
            _("Registration deadline must be before the start date."), field="registration_deadline"
        )
    if start > end:
        raise FestValidationError(_("End date must be after the start date."), field="end_date")


def unique_slug(value: str, taken: set[str], fallback: str) -> str:
    """Slugify ``value`` and suffix it until it is not in ``taken``."""
    base = slugify(value)[:56] or fallback
    slug, counter = base, 2
    while slug in taken:
        slug = f"{base}-{counter}"
        counter += 1
    taken.add(slug)
    return slug


def _clean_form_schema(event_type: str, raw: list[dict[str, t.Any]]) -> list[dict[str, t.Any]]:
    if event_type == Event.EventType.MERCHANDISE:
        if raw:
            raise FestValidationError(
                _("Merchandise events cannot have a custom form schema."), field="custom_form_schema"
            )
        return []
    return dump_form_schema(parse_form_schema(raw))


def _check_merch_items(event_type: str, items: list[MerchItemCreateSchema]) -> None:
    if event_type == Event.EventType.NORMAL and items:
        raise FestValidationError(_("Normal events cannot have merchandise items."), field="merch_items")
    if event_type == Event.EventType.MERCHANDISE and not items:
        raise FestValidationError(_("Merchandise events need at least one item."), field="merch_items")


def _create_merch_items(event: Event, items: list[MerchItemCreateSchema]) -> None:
    item_ids: set[str] = set()
    for item_payload in items:
        requested_item_id = item_payload.item_id
        if requested_item_id and requested_item_id in item_ids:
            raise FestValidationError(_("Duplicate item_id: {id}").format(id=requested_item_id), field="merch_items")
        item = MerchItem(
            event=event,
            item_id=requested_item_id or unique_slug(item_payload.name, item_ids, "item"),
            name=item_payload.name,
            description=item_payload.description,
            purchase_limit_per_participant=item_payload.purchase_limit_per_participant,
        )
        item_ids.add(item.item_id)
        item.save()

        variant_ids: set[str] = set()
        for variant_payload in item_payload.variants:
            requested_variant_id = variant_payload.variant_id
            if requested_variant_id and requested_variant_id in variant_ids:
                raise FestValidationError(
                    _("Duplicate variant_id: {id}").format(id=requested_variant_id), field="merch_items"
                )
            variant = MerchVariant(
                item=item,
                variant_id=requested_variant_id or unique_slug(variant_payload.label, variant_ids, "variant"),
                label=variant_payload.label,
                size=variant_payload.size,
                color=variant_payload.color,
                price=variant_payload.price,
                stock_qty=variant_payload.stock_qty,
            )
            variant_ids.add(variant.variant_id)
            variant.save()


@transaction.atomic
def create_event(organizer: FestUser, payload: EventCreateSchema) -> Event:
    """Create an event in DRAFT, along with its merchandise catalogue.

    Raises:
        PermissionDeniedError: if the caller is not an active organizer.
        FestValidationError: for inconsistent dates, form schema or items.
    """
    if not organizer.is_organizer:
        raise PermissionDeniedError(_("Only organizers can create events."))
    if organizer.account_status != FestUser.AccountStatus.ACTIVE:
        raise PermissionDeniedError(_("Your organizer account is not active."))

    assert_dates_ordered(payload.registration_deadline, payload.start_date, payload.end_date)
    _check_merch_items(payload.event_type, payload.merch_items)
    data = payload.model_dump(exclude={"merch_items"})
    data["custom_form_schema"] = _clean_form_schema(payload.event_type, payload.custom_form_schema)

    event = Event(organizer=organizer, status=EventStatus.DRAFT, **data)
    event.save()
    _create_merch_items(event, payload.merch_items)

    logger.info("event_created", event_id=str(event.pk), event_type=event.event_type)
    return event


def _collect_changes(payload: EventEditSchema) -> dict[str, t.Any]:
    # explicit nulls are ignored: none of the editable fields is nullable
    return {name: getattr(payload, name) for name in payload.model_fields_set if getattr(payload, name) is not None}


def _check_published_edit(event: Event, changes: dict[str, t.Any]) -> None:
    forbidden = sorted(set(changes) - PUBLISHED_EDITABLE_FIELDS)
    if forbidden:
        raise PermissionDeniedError(_("Cannot edit {fields} of a published event.").format(fields=", ".join(forbidden)))
    deadline = changes.get("registration_deadline")
    if deadline is not None and deadline < event.registration_deadline:
        raise FestValidationError(_("Registration deadline can only be extended."), field="registration_deadline")
    limit = changes.get("registration_limit")
    if limit is not None and limit < event.registration_limit:
        raise FestValidationError(_("Registration limit can only be increased."), field="registration_limit")
    if "custom_form_schema" in changes and event.registrations.exists():
        raise PermissionDeniedError(_("The form schema cannot change once registrations exist."))


def update_event(user: FestUser, event: Event, payload: EventEditSchema) -> Event:
    """Apply a partial update allowed by the event's current status.

    DRAFT events can be rewritten freely; PUBLISHED events accept a restricted set of
    changes; anything later is read-only.

    Raises:
        PermissionDeniedError: for edits outside the allowed state or field set.
        FestValidationError: for shrinking the deadline or limit, or inconsistent values.
    """
    assert_owner(user, event)
    changes = _collect_changes(payload)
    items: list[MerchItemCreateSchema] | None = changes.pop("merch_items", None)

    if event.status == EventStatus.PUBLISHED:
        if items is not None:
            raise PermissionDeniedError(_("Cannot edit merch_items of a published event."))
        _check_published_edit(event, changes)
    elif event.status != EventStatus.DRAFT:
        raise PermissionDeniedError(_("Events cannot be edited in {status} status.").format(status=event.status))

    assert_dates_ordered(
        changes.get("registration_deadline", event.registration_deadline),
        changes.get("start_date", event.start_date),
        changes.get("end_date", event.end_date),
    )
    if "custom_form_schema" in changes:
        changes["custom_form_schema"] = _clean_form_schema(event.event_type, changes["custom_form_schema"])
    if items is not None:
        _check_merch_items(event.event_type, items)

    with transaction.atomic():
        updated = update_db_instance(event, changes)
        if items is not None:
            updated.merch_items.all().delete()
            _create_merch_items(updated, items)

    logger.info("event_updated", event_id=str(event.pk), status=updated.status, fields=sorted(changes))
    return updated


def delete_event(user: FestUser, event: Event) -> None:
    """Delete a DRAFT event.

    Raises:
        PermissionDeniedError: if the caller does not own the event or it left DRAFT.
    """
    assert_owner(user, event)
    if event.status != EventStatus.DRAFT:
        raise PermissionDeniedError(_("Only draft events can be deleted."))
    event_id = str(event.pk)
    event.delete()
    logger.info("event_deleted", event_id=event_id)


def transition(user: FestUser, event: Event, action: str) -> Event:
    """Move the event along the lifecycle.

    Publishing posts the Discord announcement first; if that fails the event stays DRAFT.

    Raises:
        PermissionDeniedError: if the caller does not own the event.
        ConflictError: if the event is not in a state the action starts from.
        DeliveryFailedError: if the publish announcement could not be delivered.
    """
    assert_owner(user, event)
    sources, target = TRANSITIONS[action]
    if event.status not in sources:
        raise ConflictError(
            _("Cannot {action} an event in {status} status.").format(action=action, status=event.status)
        )

    if action == "publish":
        announcement_service.announce_event(event)

    moved = Event.objects.filter(pk=event.pk, status__in=sources).update(status=target)
    if not moved:
        event.refresh_from_db(fields=["status"])
        raise ConflictError(
            _("Cannot {action} an event in {status} status.").format(action=action, status=event.status)
        )
    event.refresh_from_db()
    logger.info("event_transitioned", event_id=str(event.pk), action=action, status=event.status)
    return event


def publish_event(user: FestUser, event: Event) -> Event:
    return transition(user, event, "publish")


def start_event(user: FestUser, event: Event) -> Event:
    return transition(user, event, "start")


def close_event(user: FestUser, event: Event) -> Event:
    return transition(user, event, "close")


def complete_event(user: FestUser, event: Event) -> Event:
    return transition(user, event, "complete")
