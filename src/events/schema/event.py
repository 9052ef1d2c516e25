"""Event schemas."""

import typing as t
from decimal import Decimal
from uuid import UUID

from ninja import Schema
from pydantic import AwareDatetime, Field, StringConstraints

from accounts.models import FestUser
from common.schema import OneToTwoFiftyFiveString, StrippedString
from events.models import Event, MerchItem
from events.service.event_manager import EventEligibility

# Item and variant ids are lowercase slugs; generated from names when omitted
SlugId = t.Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=64, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
]
Tag = t.Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=64)]


class MerchVariantCreateSchema(Schema):
    variant_id: SlugId | None = None
    label: OneToTwoFiftyFiveString
    size: StrippedString = ""
    color: StrippedString = ""
    price: Decimal = Field(Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    stock_qty: int = Field(0, ge=0)


class MerchItemCreateSchema(Schema):
    item_id: SlugId | None = None
    name: OneToTwoFiftyFiveString
    description: StrippedString = ""
    purchase_limit_per_participant: int = Field(1, ge=1)
    variants: list[MerchVariantCreateSchema] = Field(..., min_length=1)


class EventEditSchema(Schema):
    """Partial update; only the fields sent are applied.

    The event type cannot change after creation, so it is not part of this schema.
    """

    name: OneToTwoFiftyFiveString | None = None
    description: StrippedString | None = None
    eligibility: Event.Eligibility | None = None
    registration_deadline: AwareDatetime | None = None
    start_date: AwareDatetime | None = None
    end_date: AwareDatetime | None = None
    registration_limit: int | None = Field(None, ge=1)
    registration_fee: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    tags: list[Tag] | None = None
    custom_form_schema: list[dict[str, t.Any]] | None = None
    merch_items: list[MerchItemCreateSchema] | None = None


class EventCreateSchema(Schema):
    name: OneToTwoFiftyFiveString
    description: StrippedString = ""
    event_type: Event.EventType = Event.EventType.NORMAL
    eligibility: Event.Eligibility = Event.Eligibility.ALL
    registration_deadline: AwareDatetime
    start_date: AwareDatetime
    end_date: AwareDatetime
    registration_limit: int = Field(..., ge=1)
    registration_fee: Decimal = Field(Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    tags: list[Tag] = Field(default_factory=list)
    custom_form_schema: list[dict[str, t.Any]] = Field(default_factory=list)
    merch_items: list[MerchItemCreateSchema] = Field(default_factory=list)


class OrganizerSchema(Schema):
    id: UUID
    organizer_name: str

    @staticmethod
    def resolve_organizer_name(obj: FestUser) -> str:
        return obj.display_name


class MerchVariantSchema(Schema):
    variant_id: str
    label: str
    size: str
    color: str
    price: Decimal
    stock_qty: int


class MerchItemSchema(Schema):
    item_id: str
    name: str
    description: str
    purchase_limit_per_participant: int
    variants: list[MerchVariantSchema]

    @staticmethod
    def resolve_variants(obj: MerchItem) -> list[t.Any]:
        return list(obj.variants.all())


class EventInListSchema(Schema):
    id: UUID
    organizer: OrganizerSchema
    name: str
    description: str
    event_type: Event.EventType
    status: Event.EventStatus
    eligibility: Event.Eligibility
    registration_deadline: AwareDatetime
    start_date: AwareDatetime
    end_date: AwareDatetime
    registration_limit: int
    registration_fee: Decimal
    tags: list[str]


class EventDetailSchema(EventInListSchema):
    custom_form_schema: list[dict[str, t.Any]]
    merch_items: list[MerchItemSchema]
    created_at: AwareDatetime
    updated_at: AwareDatetime

    @staticmethod
    def resolve_merch_items(obj: Event) -> list[t.Any]:
        return list(obj.merch_items.all())


class ParticipantEventDetailSchema(Schema):
    """An event as a participant sees it, with the admission gate's verdict for them."""

    event: EventDetailSchema
    eligibility: EventEligibility
