import smtplib
import typing as t
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.core import mail
from django.core.files.uploadedfile import SimpleUploadedFile

from accounts.models import FestUser
from common.blobs import BlobStorageError
from common.models import StoredBlob
from events.exceptions import (
    ConflictError,
    DeliveryFailedError,
    FestValidationError,
    NotFoundError,
    PermissionDeniedError,
    StorageError,
)
from events.models import Event, MerchItem, MerchPurchase, MerchVariant, Registration, Ticket
from events.service import attendance_service, merch_service
from events.service.event_manager import AdmissionBlockedError, Reasons

pytestmark = pytest.mark.django_db

PaymentStatus = MerchPurchase.PaymentStatus


def _proof(
    name: str = "proof.png", content_type: str = "image/png", content: bytes = b"\x89PNG proof"
) -> SimpleUploadedFile:
    return SimpleUploadedFile(name, content, content_type=content_type)


def _smtp_down() -> t.Any:
    return patch("django.core.mail.EmailMultiAlternatives.send", side_effect=smtplib.SMTPException("down"))


@pytest.fixture
def pending_order(participant: FestUser, merch_event: Event, hoodie_variant: MerchVariant) -> MerchPurchase:
    """A deferred order of two hoodies with a payment proof awaiting review."""
    purchase = merch_service.place_order(
        participant=participant, event=merch_event, item_id="hoodie", variant_id="m-black", quantity=2
    )
    return merch_service.submit_payment_proof(
        participant=participant, registration_id=purchase.registration_id, file=_proof()
    )


# ---- Input parsing ----


@pytest.mark.parametrize("value,expected", [(1, 1), ("3", 3), (2.0, 2), (" 4 ", 4)])
def test_parse_quantity_accepts_positive_integers(value: t.Any, expected: int) -> None:
    assert merch_service.parse_quantity(value) == expected


@pytest.mark.parametrize("value", [0, -1, 1.5, True, "two", None, ""])
def test_parse_quantity_rejects_everything_else(value: t.Any) -> None:
    with pytest.raises(FestValidationError) as exc_info:
        merch_service.parse_quantity(value)

    assert exc_info.value.field == "quantity"


@pytest.mark.parametrize(
    "item_id,variant_id,quantity,message",
    [
        ("mug", "m-black", 1, "Invalid item_id"),
        ("hoodie", "xl-red", 1, "Invalid variant_id"),
        ("hoodie", "m-black", 3, "Quantity exceeds purchase limit for this item"),
        ("", "m-black", 1, "item_id, variant_id and positive integer quantity are required"),
    ],
)
def test_resolve_selection_errors(
    merch_event: Event, hoodie_variant: MerchVariant, item_id: str, variant_id: str, quantity: int, message: str
) -> None:
    with pytest.raises(FestValidationError) as exc_info:
        merch_service.resolve_selection(merch_event, item_id, variant_id, quantity)

    assert exc_info.value.message == message


def test_unit_price_falls_back_to_event_fee(merch_event: Event, hoodie: MerchItem) -> None:
    free_variant = MerchVariant.objects.create(item=hoodie, variant_id="s-white", label="S / White", stock_qty=1)

    assert merch_service.unit_price_for(merch_event, free_variant) == Decimal("299.00")


# ---- Stock ----


def test_reserve_stock_never_goes_negative(hoodie_variant: MerchVariant) -> None:
    merch_service.reserve_stock(hoodie_variant.pk, 5)

    with pytest.raises(FestValidationError, match="Not enough stock available"):
        merch_service.reserve_stock(hoodie_variant.pk, 1)

    hoodie_variant.refresh_from_db()
    assert hoodie_variant.stock_qty == 0


def test_undo_reserved_order_restores_stock_once(
    participant: FestUser, merch_event: Event, hoodie: MerchItem, hoodie_variant: MerchVariant
) -> None:
    registration = merch_service._create_order(
        merch_event, participant=participant, item=hoodie, variant=hoodie_variant, quantity=2, reserve=True
    )

    merch_service.undo_reserved_order(registration, hoodie_variant.pk, 2)
    merch_service.undo_reserved_order(registration, hoodie_variant.pk, 2)

    hoodie_variant.refresh_from_db()
    assert hoodie_variant.stock_qty == 5
    assert not Registration.objects.filter(pk=registration.pk).exists()


# ---- Reserve-at-submit ----


def test_purchase_reserves_stock_and_issues_ticket(
    participant: FestUser, merch_event: Event, hoodie_variant: MerchVariant
) -> None:
    result = merch_service.purchase_merchandise(
        participant=participant, event=merch_event, item_id="hoodie", variant_id="m-black", quantity=2
    )

    hoodie_variant.refresh_from_db()
    assert hoodie_variant.stock_qty == 3
    assert result.purchase.quantity == 2
    assert result.purchase.unit_price == Decimal("499.00")
    assert result.purchase.total_amount == Decimal("998.00")
    assert result.purchase.stock_reserved is True
    assert result.purchase.payment_status == PaymentStatus.APPROVED
    assert result.purchase.finalized_at is not None
    assert result.ticket.registration == result.registration
    assert len(mail.outbox) == 1
    assert "Purchase Confirmation" in mail.outbox[0].subject


def test_last_unit_goes_to_one_participant(
    participant: FestUser, other_participant: FestUser, merch_event: Event, hoodie_variant: MerchVariant
) -> None:
    MerchVariant.objects.filter(pk=hoodie_variant.pk).update(stock_qty=1)

    merch_service.purchase_merchandise(
        participant=participant, event=merch_event, item_id="hoodie", variant_id="m-black", quantity=1
    )
    with pytest.raises(AdmissionBlockedError) as exc_info:
        merch_service.purchase_merchandise(
            participant=other_participant, event=merch_event, item_id="hoodie", variant_id="m-black", quantity=1
        )

    assert exc_info.value.reason == Reasons.STOCK_EXHAUSTED
    hoodie_variant.refresh_from_db()
    assert hoodie_variant.stock_qty == 0
    assert MerchPurchase.objects.filter(variant=hoodie_variant).count() == 1


def test_sold_out_variant_while_others_remain(
    participant: FestUser, merch_event: Event, hoodie: MerchItem, hoodie_variant: MerchVariant
) -> None:
    MerchVariant.objects.filter(pk=hoodie_variant.pk).update(stock_qty=0)
    MerchVariant.objects.create(item=hoodie, variant_id="l-black", label="L / Black", price=Decimal("499"), stock_qty=3)

    with pytest.raises(FestValidationError, match="Not enough stock available"):
        merch_service.purchase_merchandise(
            participant=participant, event=merch_event, item_id="hoodie", variant_id="m-black", quantity=1
        )

    assert not Registration.objects.filter(event=merch_event).exists()


def test_purchase_email_failure_restores_stock(
    participant: FestUser, merch_event: Event, hoodie_variant: MerchVariant
) -> None:
    with _smtp_down(), pytest.raises(DeliveryFailedError) as exc_info:
        merch_service.purchase_merchandise(
            participant=participant, event=merch_event, item_id="hoodie", variant_id="m-black", quantity=2
        )

    assert exc_info.value.message == "Ticket email delivery failed. Purchase reverted."
    hoodie_variant.refresh_from_db()
    assert hoodie_variant.stock_qty == 5
    assert not Registration.objects.filter(event=merch_event).exists()
    assert not MerchPurchase.objects.exists()
    assert not Ticket.objects.exists()


def test_purchase_rejects_normal_events(participant: FestUser, published_event: Event) -> None:
    with pytest.raises(FestValidationError, match="register endpoint"):
        merch_service.purchase_merchandise(
            participant=participant, event=published_event, item_id="hoodie", variant_id="m-black", quantity=1
        )


# ---- Defer-to-approval ----


def test_place_order_does_not_touch_stock(
    participant: FestUser, merch_event: Event, hoodie_variant: MerchVariant
) -> None:
    purchase = merch_service.place_order(
        participant=participant, event=merch_event, item_id="hoodie", variant_id="m-black", quantity=2
    )

    hoodie_variant.refresh_from_db()
    assert hoodie_variant.stock_qty == 5
    assert purchase.payment_status == PaymentStatus.PAYMENT_PENDING
    assert purchase.stock_reserved is False
    assert not Ticket.objects.exists()
    assert mail.outbox == []


def test_place_order_with_proof_goes_straight_to_review(
    participant: FestUser, merch_event: Event, hoodie_variant: MerchVariant
) -> None:
    purchase = merch_service.place_order(
        participant=participant,
        event=merch_event,
        item_id="hoodie",
        variant_id="m-black",
        quantity=1,
        payment_proof=_proof(),
    )

    assert purchase.payment_status == PaymentStatus.PENDING_APPROVAL
    assert purchase.payment_proof is not None
    assert purchase.payment_proof.name == "proof.png"


def test_place_order_rejects_bad_proof_before_writing(
    participant: FestUser, merch_event: Event, hoodie_variant: MerchVariant
) -> None:
    with pytest.raises(FestValidationError) as exc_info:
        merch_service.place_order(
            participant=participant,
            event=merch_event,
            item_id="hoodie",
            variant_id="m-black",
            quantity=1,
            payment_proof=_proof(name="proof.txt", content_type="text/plain"),
        )

    assert exc_info.value.field == "payment_proof"
    assert not Registration.objects.exists()


def test_submit_payment_proof(pending_order: MerchPurchase) -> None:
    assert pending_order.payment_status == PaymentStatus.PENDING_APPROVAL
    assert pending_order.payment_proof_uploaded_at is not None
    assert pending_order.payment_proof.metadata["kind"] == "payment_proof"  # type: ignore[union-attr]


def test_submit_payment_proof_twice_conflicts(participant: FestUser, pending_order: MerchPurchase) -> None:
    with pytest.raises(ConflictError, match="pending approval"):
        merch_service.submit_payment_proof(
            participant=participant, registration_id=pending_order.registration_id, file=_proof()
        )

    assert StoredBlob.objects.count() == 1


def test_submit_payment_proof_for_someone_else(other_participant: FestUser, pending_order: MerchPurchase) -> None:
    with pytest.raises(PermissionDeniedError):
        merch_service.submit_payment_proof(
            participant=other_participant, registration_id=pending_order.registration_id, file=_proof()
        )


def test_submit_payment_proof_for_normal_registration(participant: FestUser, registration: Registration) -> None:
    with pytest.raises(NotFoundError, match="Merchandise order not found"):
        merch_service.submit_payment_proof(participant=participant, registration_id=registration.pk, file=_proof())


def test_submit_payment_proof_when_storage_fails(
    participant: FestUser, merch_event: Event, hoodie_variant: MerchVariant
) -> None:
    purchase = merch_service.place_order(
        participant=participant, event=merch_event, item_id="hoodie", variant_id="m-black", quantity=1
    )

    with patch("events.service.registration_service.upload_blob", side_effect=BlobStorageError("disk full")):
        with pytest.raises(StorageError) as exc_info:
            merch_service.submit_payment_proof(
                participant=participant, registration_id=purchase.registration_id, file=_proof()
            )

    assert exc_info.value.code == "UPLOAD_FAILED"
    assert exc_info.value.status_code == 500
    purchase.refresh_from_db()
    assert purchase.payment_status == PaymentStatus.PAYMENT_PENDING
    assert purchase.payment_proof is None


@pytest.mark.parametrize(
    "content_type,content",
    [("text/plain", b"hello"), ("image/png", b"")],
)
def test_check_payment_proof_file(content_type: str, content: bytes) -> None:
    with pytest.raises(FestValidationError):
        merch_service.check_payment_proof_file(_proof(content_type=content_type, content=content))


def test_get_payment_proof_access(
    pending_order: MerchPurchase,
    participant: FestUser,
    other_participant: FestUser,
    organizer: FestUser,
    admin_user: FestUser,
) -> None:
    for user in (participant, organizer, admin_user):
        assert merch_service.get_payment_proof(user=user, registration_id=pending_order.registration_id).pk == (
            pending_order.pk
        )
    with pytest.raises(PermissionDeniedError):
        merch_service.get_payment_proof(user=other_participant, registration_id=pending_order.registration_id)


def test_get_payment_proof_without_upload(
    participant: FestUser, merch_event: Event, hoodie_variant: MerchVariant
) -> None:
    purchase = merch_service.place_order(
        participant=participant, event=merch_event, item_id="hoodie", variant_id="m-black", quantity=1
    )

    with pytest.raises(NotFoundError, match="No payment proof uploaded"):
        merch_service.get_payment_proof(user=participant, registration_id=purchase.registration_id)


# ---- Listing ----


def test_list_orders_filters_by_payment_status(
    pending_order: MerchPurchase, other_participant: FestUser, merch_event: Event
) -> None:
    merch_service.place_order(
        participant=other_participant, event=merch_event, item_id="hoodie", variant_id="m-black", quantity=1
    )

    assert merch_service.list_orders(merch_event).count() == 2
    assert merch_service.list_orders(merch_event, "all").count() == 2
    assert list(merch_service.list_orders(merch_event, "pending_approval")) == [pending_order]
    assert merch_service.list_orders(merch_event, PaymentStatus.APPROVED).count() == 0


def test_list_orders_rejects_unknown_filter(merch_event: Event) -> None:
    with pytest.raises(FestValidationError, match="Invalid payment_status filter"):
        merch_service.list_orders(merch_event, "PAID")


# ---- Review ----


def test_approve_takes_stock_and_issues_ticket(
    organizer: FestUser, merch_event: Event, pending_order: MerchPurchase, hoodie_variant: MerchVariant
) -> None:
    result = merch_service.review_order(
        reviewer=organizer,
        event=merch_event,
        registration_id=pending_order.registration_id,
        status="approved",
        comment=" paid ",
    )

    hoodie_variant.refresh_from_db()
    assert hoodie_variant.stock_qty == 3
    assert result.purchase.payment_status == PaymentStatus.APPROVED
    assert result.purchase.stock_reserved is True
    assert result.purchase.reviewed_by == organizer
    assert result.purchase.review_comment == "paid"
    assert result.purchase.finalized_at is not None
    assert result.ticket is not None
    assert result.ticket.registration_id == pending_order.registration_id
    assert len(mail.outbox) == 1


def test_reserved_purchase_accepts_no_proof_or_review(
    participant: FestUser, organizer: FestUser, merch_event: Event, hoodie_variant: MerchVariant
) -> None:
    """An order settled at purchase keeps its units and a valid ticket."""
    bought = merch_service.purchase_merchandise(
        participant=participant, event=merch_event, item_id="hoodie", variant_id="m-black", quantity=1
    )

    with pytest.raises(ConflictError, match="already approved"):
        merch_service.submit_payment_proof(
            participant=participant, registration_id=bought.registration.pk, file=_proof()
        )
    for decision in ("REJECTED", "APPROVED"):
        with pytest.raises(ConflictError):
            merch_service.review_order(
                reviewer=organizer, event=merch_event, registration_id=bought.registration.pk, status=decision
            )

    purchase = MerchPurchase.objects.get(pk=bought.purchase.pk)
    hoodie_variant.refresh_from_db()
    assert purchase.payment_status == PaymentStatus.APPROVED
    assert purchase.payment_proof is None
    assert purchase.reviewed_by is None
    assert hoodie_variant.stock_qty == 4
    assert not StoredBlob.objects.exists()
    registration = attendance_service.scan(event=merch_event, scanner=organizer, qr_payload=bought.ticket.qr_payload)
    assert registration.attended is True


def test_release_order_stock_restores_once(
    participant: FestUser, merch_event: Event, hoodie_variant: MerchVariant
) -> None:
    purchase = merch_service.place_order(
        participant=participant, event=merch_event, item_id="hoodie", variant_id="m-black", quantity=2
    )

    merch_service.reserve_order_stock(purchase)
    merch_service.reserve_order_stock(purchase)
    hoodie_variant.refresh_from_db()
    assert hoodie_variant.stock_qty == 3

    merch_service.release_order_stock(purchase.pk, hoodie_variant.pk, 2)
    merch_service.release_order_stock(purchase.pk, hoodie_variant.pk, 2)

    hoodie_variant.refresh_from_db()
    purchase.refresh_from_db()
    assert hoodie_variant.stock_qty == 5
    assert purchase.stock_reserved is False


def test_failed_reservation_leaves_order_unflagged(
    participant: FestUser, merch_event: Event, hoodie_variant: MerchVariant
) -> None:
    purchase = merch_service.place_order(
        participant=participant, event=merch_event, item_id="hoodie", variant_id="m-black", quantity=2
    )
    MerchVariant.objects.filter(pk=hoodie_variant.pk).update(stock_qty=1)

    with pytest.raises(FestValidationError, match="Not enough stock available"):
        merch_service.reserve_order_stock(purchase)

    purchase.refresh_from_db()
    hoodie_variant.refresh_from_db()
    assert purchase.stock_reserved is False
    assert hoodie_variant.stock_qty == 1


def test_reject_finalizes_without_side_effects(
    organizer: FestUser, merch_event: Event, pending_order: MerchPurchase, hoodie_variant: MerchVariant
) -> None:
    result = merch_service.review_order(
        reviewer=organizer,
        event=merch_event,
        registration_id=pending_order.registration_id,
        status="REJECTED",
        comment="Blurry screenshot",
    )

    hoodie_variant.refresh_from_db()
    assert hoodie_variant.stock_qty == 5
    assert result.purchase.payment_status == PaymentStatus.REJECTED
    assert result.purchase.review_comment == "Blurry screenshot"
    assert result.purchase.finalized_at is not None
    assert result.ticket is None
    assert not Ticket.objects.exists()
    assert mail.outbox == []


def test_reupload_after_rejection_reopens_review(
    participant: FestUser, organizer: FestUser, merch_event: Event, pending_order: MerchPurchase
) -> None:
    first_proof_id = pending_order.payment_proof_id
    merch_service.review_order(
        reviewer=organizer, event=merch_event, registration_id=pending_order.registration_id, status="REJECTED"
    )

    purchase = merch_service.submit_payment_proof(
        participant=participant, registration_id=pending_order.registration_id, file=_proof(name="retry.png")
    )

    assert purchase.payment_status == PaymentStatus.PENDING_APPROVAL
    assert purchase.reviewed_by is None
    assert purchase.reviewed_at is None
    assert purchase.finalized_at is None
    assert purchase.payment_proof_id != first_proof_id
    assert not StoredBlob.objects.filter(pk=first_proof_id).exists()


def test_review_requires_pending_approval(
    organizer: FestUser, participant: FestUser, merch_event: Event, hoodie_variant: MerchVariant
) -> None:
    purchase = merch_service.place_order(
        participant=participant, event=merch_event, item_id="hoodie", variant_id="m-black", quantity=1
    )

    with pytest.raises(ConflictError):
        merch_service.review_order(
            reviewer=organizer, event=merch_event, registration_id=purchase.registration_id, status="APPROVED"
        )


def test_second_review_conflicts(organizer: FestUser, merch_event: Event, pending_order: MerchPurchase) -> None:
    merch_service.review_order(
        reviewer=organizer, event=merch_event, registration_id=pending_order.registration_id, status="REJECTED"
    )

    with pytest.raises(ConflictError):
        merch_service.review_order(
            reviewer=organizer, event=merch_event, registration_id=pending_order.registration_id, status="APPROVED"
        )


def test_claim_is_exclusive(organizer: FestUser, admin_user: FestUser, pending_order: MerchPurchase) -> None:
    """A second reviewer cannot claim an order someone is already approving."""
    merch_service._claim_for_review(pending_order.pk, organizer, "")

    with pytest.raises(ConflictError):
        merch_service._claim_for_review(pending_order.pk, admin_user, "")


def test_review_rejects_unknown_decision(organizer: FestUser, merch_event: Event, pending_order: MerchPurchase) -> None:
    with pytest.raises(FestValidationError) as exc_info:
        merch_service.review_order(
            reviewer=organizer, event=merch_event, registration_id=pending_order.registration_id, status="MAYBE"
        )

    assert exc_info.value.field == "status"


def test_review_of_order_from_another_event(
    organizer: FestUser, event_factory: t.Callable[..., Event], pending_order: MerchPurchase
) -> None:
    other_event = event_factory(name="Other Merch", event_type=Event.EventType.MERCHANDISE)

    with pytest.raises(NotFoundError):
        merch_service.review_order(
            reviewer=organizer, event=other_event, registration_id=pending_order.registration_id, status="APPROVED"
        )


def test_approval_fails_when_stock_ran_out(
    organizer: FestUser, merch_event: Event, pending_order: MerchPurchase, hoodie_variant: MerchVariant
) -> None:
    MerchVariant.objects.filter(pk=hoodie_variant.pk).update(stock_qty=1)

    with pytest.raises(FestValidationError, match="Not enough stock available"):
        merch_service.review_order(
            reviewer=organizer, event=merch_event, registration_id=pending_order.registration_id, status="APPROVED"
        )

    pending_order.refresh_from_db()
    hoodie_variant.refresh_from_db()
    assert pending_order.payment_status == PaymentStatus.PENDING_APPROVAL
    assert pending_order.reviewed_by is None
    assert hoodie_variant.stock_qty == 1
    assert not Ticket.objects.exists()


def test_approval_email_failure_reverts_everything(
    organizer: FestUser, merch_event: Event, pending_order: MerchPurchase, hoodie_variant: MerchVariant
) -> None:
    with _smtp_down(), pytest.raises(DeliveryFailedError) as exc_info:
        merch_service.review_order(
            reviewer=organizer, event=merch_event, registration_id=pending_order.registration_id, status="APPROVED"
        )

    assert exc_info.value.message == "Ticket email delivery failed. Order approval reverted."
    pending_order.refresh_from_db()
    hoodie_variant.refresh_from_db()
    assert pending_order.payment_status == PaymentStatus.PENDING_APPROVAL
    assert pending_order.reviewed_by is None
    assert pending_order.reviewed_at is None
    assert pending_order.finalized_at is None
    assert hoodie_variant.stock_qty == 5
    assert pending_order.stock_reserved is False
    assert not Ticket.objects.exists()

    result = merch_service.review_order(
        reviewer=organizer, event=merch_event, registration_id=pending_order.registration_id, status="APPROVED"
    )
    assert result.purchase.payment_status == PaymentStatus.APPROVED
