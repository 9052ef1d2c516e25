"""Merchandise purchase, order and payment proof schemas."""

from decimal import Decimal
from uuid import UUID

from ninja import Schema
from pydantic import AwareDatetime, Field

from accounts.models import FestUser
from common.models import StoredBlob
from common.schema import StrippedString
from events.models import MerchPurchase


class PurchaseCreateSchema(Schema):
    item_id: StrippedString
    variant_id: StrippedString
    quantity: int


class OrderCreateSchema(PurchaseCreateSchema):
    """Form fields of a deferred order; the payment proof travels as a separate file part."""


class ReviewOrderSchema(Schema):
    status: StrippedString = Field(..., description="APPROVED or REJECTED")
    comment: StrippedString = ""


class PaymentProofSchema(Schema):
    file_id: UUID
    file_name: str
    mime_type: str
    size: int
    sha256: str

    @staticmethod
    def resolve_file_id(obj: StoredBlob) -> UUID:
        return obj.id

    @staticmethod
    def resolve_file_name(obj: StoredBlob) -> str:
        return obj.name


class MerchPurchaseSchema(Schema):
    registration_id: UUID
    item_id: str
    variant_id: str
    quantity: int
    unit_price: Decimal
    total_amount: Decimal
    stock_reserved: bool
    payment_status: MerchPurchase.PaymentStatus
    payment_proof: PaymentProofSchema | None = None
    payment_proof_uploaded_at: AwareDatetime | None = None
    reviewed_by_id: UUID | None = None
    reviewed_at: AwareDatetime | None = None
    review_comment: str
    finalized_at: AwareDatetime | None = None

    @staticmethod
    def resolve_item_id(obj: MerchPurchase) -> str:
        return obj.item.item_id

    @staticmethod
    def resolve_variant_id(obj: MerchPurchase) -> str:
        return obj.variant.variant_id


class OrderParticipantSchema(Schema):
    id: UUID
    email: str
    name: str

    @staticmethod
    def resolve_name(obj: FestUser) -> str:
        return obj.display_name


class MerchOrderSchema(MerchPurchaseSchema):
    """An order as the organizer sees it in the review queue."""

    participant: OrderParticipantSchema
    item_name: str
    variant_label: str

    @staticmethod
    def resolve_participant(obj: MerchPurchase) -> FestUser:
        return obj.registration.participant

    @staticmethod
    def resolve_item_name(obj: MerchPurchase) -> str:
        return obj.item.name

    @staticmethod
    def resolve_variant_label(obj: MerchPurchase) -> str:
        return obj.variant.label


class PurchaseResultSchema(Schema):
    registration_id: UUID
    ticket_id: str | None = None
    email_sent: bool
    order: MerchPurchaseSchema


class ReviewResultSchema(Schema):
    order: MerchPurchaseSchema
    ticket_id: str | None = None
    email_sent: bool = False
