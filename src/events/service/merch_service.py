"""Merchandise engine: stock reservation, payment proofs and organizer review.

Two purchase strategies exist side by side:

- reserve-at-submit (``purchase_merchandise``): stock is taken immediately and the
  ticket and confirmation follow in the same saga.
- defer-to-approval (``place_order``): the order waits for a payment proof and an
  organizer review; stock is taken when the order is approved.

Stock is only ever changed with conditional updates, so it can never go negative
and concurrent writers cannot oversell a variant.
"""

import functools
import typing as t
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

import structlog
from django.conf import settings
from django.core.files.uploadedfile import UploadedFile
from django.db import transaction
from django.db.models import F, QuerySet
from django.utils import timezone
from django.utils.translation import gettext as _

from accounts.models import FestUser
from common.blobs import delete_blob_or_schedule_retry
from events.exceptions import ConflictError, FestValidationError, NotFoundError, PermissionDeniedError
from events.models import Event, MerchItem, MerchPurchase, MerchVariant, Registration, Ticket
from events.service import notification_service, ticket_service
from events.service.event_manager import EventManager
from events.service.registration_service import (
    assert_participant,
    can_access_registration,
    delete_registration,
    store_upload,
)
from events.service.saga import Saga

logger = structlog.get_logger(__name__)

PaymentStatus = MerchPurchase.PaymentStatus


@dataclass(frozen=True)
class PurchaseResult:
    registration: Registration
    purchase: MerchPurchase
    ticket: Ticket
    email: notification_service.EmailDelivery


@dataclass(frozen=True)
class ReviewResult:
    purchase: MerchPurchase
    ticket: Ticket | None = None
    email: notification_service.EmailDelivery | None = None


# ---- Stock ----


def reserve_stock(variant_id: UUID, quantity: int) -> None:
    """Take ``quantity`` units from a variant if that many are left.

    Raises:
        FestValidationError: if the variant does not hold enough stock.
    """
    updated = MerchVariant.objects.filter(pk=variant_id, stock_qty__gte=quantity).update(
        stock_qty=F("stock_qty") - quantity
    )
    if not updated:
        raise FestValidationError(_("Not enough stock available"), field="quantity")
    logger.info("stock_reserved", variant_id=str(variant_id), quantity=quantity)


def restore_stock(variant_id: UUID, quantity: int) -> None:
    """Give ``quantity`` units back to a variant.

    Callers guard this with a conditional update on the owning order so the
    same units are never handed back twice.
    """
    MerchVariant.objects.filter(pk=variant_id).update(stock_qty=F("stock_qty") + quantity)
    logger.info("stock_restored", variant_id=str(variant_id), quantity=quantity)


def reserve_order_stock(purchase: MerchPurchase) -> None:
    """Take an order's units from stock and flag the order as holding them.

    The flag and the decrement commit together; an order that already holds
    its units is left alone.

    Raises:
        FestValidationError: if the variant does not hold enough stock.
    """
    with transaction.atomic():
        flagged = MerchPurchase.objects.filter(pk=purchase.pk, stock_reserved=False).update(stock_reserved=True)
        if flagged:
            reserve_stock(purchase.variant_id, purchase.quantity)


def release_order_stock(purchase_id: UUID, variant_id: UUID, quantity: int) -> None:
    """Compensation: put back the units an order holds.

    Only the call that clears the order's flag restores stock, so retrying
    this after a partial rollback is harmless.
    """
    with transaction.atomic():
        released = MerchPurchase.objects.filter(pk=purchase_id, stock_reserved=True).update(stock_reserved=False)
        if released:
            restore_stock(variant_id, quantity)


# ---- Order input ----


def parse_quantity(value: t.Any) -> int:
    """Quantities are positive integers; booleans and floats with a fraction are rejected."""
    if isinstance(value, bool):
        raise FestValidationError(_("quantity must be a positive integer"), field="quantity")
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int) or value < 1:
        raise FestValidationError(_("quantity must be a positive integer"), field="quantity")
    return value


def resolve_selection(
    event: Event, item_id: str, variant_id: str, quantity: t.Any
) -> tuple[MerchItem, MerchVariant, int]:
    """Look up the selected item and variant and check the requested quantity.

    Raises:
        FestValidationError: for unknown ids, a quantity above the item's limit or above current stock.
    """
    if not item_id or not variant_id:
        raise FestValidationError(_("item_id, variant_id and positive integer quantity are required"))
    qty = parse_quantity(quantity)
    item = MerchItem.objects.filter(event=event, item_id=item_id).first()
    if item is None:
        raise FestValidationError(_("Invalid item_id"), field="item_id")
    variant = MerchVariant.objects.filter(item=item, variant_id=variant_id).first()
    if variant is None:
        raise FestValidationError(_("Invalid variant_id"), field="variant_id")
    if qty > item.purchase_limit_per_participant:
        raise FestValidationError(_("Quantity exceeds purchase limit for this item"), field="quantity")
    if variant.stock_qty < qty:
        raise FestValidationError(_("Not enough stock available"), field="quantity")
    return item, variant, qty


def unit_price_for(event: Event, variant: MerchVariant) -> Decimal:
    """The variant's price, falling back to the event's fee for unpriced variants."""
    return Decimal(variant.price or event.registration_fee or 0)


def _assert_merchandise_event(event: Event) -> None:
    if not event.is_merchandise:
        raise FestValidationError(_("Use the register endpoint for normal events."))


def _create_order(
    locked_event: Event,
    *,
    participant: FestUser,
    item: MerchItem,
    variant: MerchVariant,
    quantity: int,
    reserve: bool,
) -> Registration:
    if reserve:
        reserve_stock(variant.pk, quantity)
    registration = Registration.objects.create(
        participant=participant,
        event=locked_event,
        status=Registration.RegistrationStatus.REGISTERED,
    )
    unit_price = unit_price_for(locked_event, variant)
    # Reserved orders are settled at purchase and never enter the review queue
    MerchPurchase.objects.create(
        registration=registration,
        item=item,
        variant=variant,
        quantity=quantity,
        unit_price=unit_price,
        total_amount=unit_price * quantity,
        stock_reserved=reserve,
        payment_status=PaymentStatus.APPROVED if reserve else PaymentStatus.PAYMENT_PENDING,
        finalized_at=timezone.now() if reserve else None,
    )
    return registration


def undo_reserved_order(registration: Registration, variant_id: UUID, quantity: int) -> None:
    """Compensation: delete a reserve-at-submit order and put its units back.

    Stock is only restored when the order still existed, so running this twice
    cannot hand the same units back twice.
    """
    with transaction.atomic():
        deleted, _details = Registration.objects.filter(pk=registration.pk).delete()
        if deleted:
            restore_stock(variant_id, quantity)


# ---- Purchase (reserve-at-submit) ----


def purchase_merchandise(
    *, participant: FestUser, event: Event, item_id: str, variant_id: str, quantity: t.Any
) -> PurchaseResult:
    """Buy merchandise, taking stock immediately.

    The order is created APPROVED and finalized: it already holds its units and
    its ticket, so it accepts no payment proof and no review.

    Raises:
        PermissionDeniedError, FestValidationError, AdmissionBlockedError, DeliveryFailedError
    """
    assert_participant(participant)
    _assert_merchandise_event(event)
    manager = EventManager(participant, event)
    manager.assert_admissible()
    item, variant, qty = resolve_selection(event, item_id, variant_id, quantity)

    with Saga("merch_purchase", event_id=str(event.pk), participant_id=str(participant.pk)) as saga:
        registration = saga.step(
            "reserve_and_register",
            lambda: manager.admit(
                functools.partial(
                    _create_order, participant=participant, item=item, variant=variant, quantity=qty, reserve=True
                )
            ),
            compensate=lambda registration: undo_reserved_order(registration, variant.pk, qty),
        )
        ticket = saga.step(
            "issue_ticket",
            lambda: ticket_service.issue_ticket(registration),
            compensate=lambda ticket: ticket_service.delete_ticket(ticket.pk),
        )
        email = saga.step(
            "send_confirmation",
            lambda: notification_service.send_ticket_email(
                event=event,
                registration=registration,
                ticket=ticket,
                flow="purchase",
                failure_message=_("Ticket email delivery failed. Purchase reverted."),
            ),
        )

    logger.info("merch_purchase_completed", registration_id=str(registration.pk), quantity=qty)
    return PurchaseResult(registration=registration, purchase=registration.merch_purchase, ticket=ticket, email=email)


# ---- Order placement (defer-to-approval) ----


def place_order(
    *,
    participant: FestUser,
    event: Event,
    item_id: str,
    variant_id: str,
    quantity: t.Any,
    payment_proof: UploadedFile | None = None,
) -> MerchPurchase:
    """Place an order paid out-of-band; stock is taken when an organizer approves it.

    If a payment proof is attached it is submitted right away; should that fail,
    the order is removed again.
    """
    assert_participant(participant)
    _assert_merchandise_event(event)
    manager = EventManager(participant, event)
    manager.assert_admissible()
    item, variant, qty = resolve_selection(event, item_id, variant_id, quantity)
    if payment_proof is not None:
        check_payment_proof_file(payment_proof)

    with Saga("merch_order", event_id=str(event.pk), participant_id=str(participant.pk)) as saga:
        registration = saga.step(
            "register_order",
            lambda: manager.admit(
                functools.partial(
                    _create_order, participant=participant, item=item, variant=variant, quantity=qty, reserve=False
                )
            ),
            compensate=delete_registration,
        )
        purchase = registration.merch_purchase
        if payment_proof is not None:
            purchase = saga.step(
                "submit_payment_proof",
                lambda: submit_payment_proof(
                    participant=participant, registration_id=registration.pk, file=payment_proof
                ),
            )

    logger.info("merch_order_placed", registration_id=str(registration.pk), payment_status=purchase.payment_status)
    return purchase


# ---- Payment proof ----


def check_payment_proof_file(file: UploadedFile) -> None:
    """Only PDF, PNG and JPEG files up to the configured size are accepted."""
    if (file.content_type or "") not in settings.PAYMENT_PROOF_ALLOWED_MIME_TYPES:
        raise FestValidationError(_("Payment proof must be a PDF, PNG or JPEG file."), field="payment_proof")
    if (file.size or 0) < 1 or file.size > settings.PAYMENT_PROOF_MAX_SIZE_MB * 1024 * 1024:  # type: ignore[operator]
        raise FestValidationError(_("Payment proof file size is invalid."), field="payment_proof")


def _assert_proof_upload_allowed(purchase: MerchPurchase) -> None:
    if purchase.payment_status == PaymentStatus.PENDING_APPROVAL:
        raise ConflictError(_("Payment proof already submitted and pending approval."))
    if purchase.stock_reserved or purchase.payment_status == PaymentStatus.APPROVED:
        raise ConflictError(_("Order is already approved."))


def get_order_registration(registration_id: UUID) -> Registration:
    """A merchandise registration with its order.

    Raises:
        NotFoundError: if the registration does not exist or carries no order.
    """
    registration = (
        Registration.objects.with_related().select_related("merch_purchase").filter(pk=registration_id).first()
    )
    if registration is None or not hasattr(registration, "merch_purchase"):
        raise NotFoundError(_("Merchandise order not found."))
    return registration


def submit_payment_proof(*, participant: FestUser, registration_id: UUID, file: UploadedFile) -> MerchPurchase:
    """Attach a payment proof to the participant's own order and queue it for review.

    The previous proof, if any, is deleted only after the new one is referenced.

    Raises:
        NotFoundError, PermissionDeniedError, ConflictError, FestValidationError, StorageError
    """
    registration = get_order_registration(registration_id)
    if registration.participant_id != participant.pk:
        raise PermissionDeniedError(_("You can only upload a payment proof for your own order."))
    _assert_proof_upload_allowed(registration.merch_purchase)
    check_payment_proof_file(file)

    with Saga("payment_proof", registration_id=str(registration_id)) as saga:
        blob = saga.step(
            "upload_proof",
            functools.partial(
                store_upload,
                file,
                metadata={"registration_id": str(registration_id), "kind": "payment_proof"},
            ),
            compensate=lambda blob: delete_blob_or_schedule_retry(blob.pk),
        )
        with transaction.atomic():
            purchase = MerchPurchase.objects.select_for_update().get(registration_id=registration_id)
            _assert_proof_upload_allowed(purchase)
            previous_proof_id = purchase.payment_proof_id
            purchase.payment_proof = blob
            purchase.payment_proof_uploaded_at = timezone.now()
            purchase.payment_status = PaymentStatus.PENDING_APPROVAL
            purchase.reviewed_by = None
            purchase.reviewed_at = None
            purchase.review_comment = ""
            purchase.finalized_at = None
            purchase.save()

    if previous_proof_id:
        delete_blob_or_schedule_retry(previous_proof_id)
    logger.info("payment_proof_submitted", registration_id=str(registration_id), blob_id=str(blob.pk))
    return purchase


def get_payment_proof(*, user: FestUser, registration_id: UUID) -> MerchPurchase:
    """The order whose payment proof the user wants to see.

    Raises:
        NotFoundError: if there is no order or no proof yet.
        PermissionDeniedError: if the user may not access the order.
    """
    registration = get_order_registration(registration_id)
    if not can_access_registration(user, registration):
        raise PermissionDeniedError(_("You are not allowed to access this payment proof."))
    purchase = registration.merch_purchase
    if purchase.payment_proof is None:
        raise NotFoundError(_("No payment proof uploaded."))
    return purchase


# ---- Organizer review ----


def parse_payment_status_filter(raw: str | None) -> str | None:
    """``None``/``ALL`` mean no filter; anything else must be a payment status."""
    value = (raw or "ALL").strip().upper()
    if value == "ALL":
        return None
    if value not in PaymentStatus.values:
        raise FestValidationError(_("Invalid payment_status filter"), field="payment_status")
    return value


def list_orders(event: Event, payment_status: str | None = None) -> QuerySet[MerchPurchase]:
    """Orders of a merchandise event, newest first, optionally filtered by payment status."""
    qs = MerchPurchase.objects.select_related(
        "registration", "registration__participant", "item", "variant", "reviewed_by", "payment_proof"
    ).filter(registration__event=event)
    if status := parse_payment_status_filter(payment_status):
        qs = qs.filter(payment_status=status)
    return qs


def _review_snapshot(purchase: MerchPurchase) -> dict[str, t.Any]:
    return {
        "payment_status": purchase.payment_status,
        "reviewed_by_id": purchase.reviewed_by_id,
        "reviewed_at": purchase.reviewed_at,
        "review_comment": purchase.review_comment,
        "finalized_at": purchase.finalized_at,
    }


def _claim_for_review(purchase_id: UUID, reviewer: FestUser, comment: str, **extra: t.Any) -> None:
    """Atomically mark a pending, unclaimed order as reviewed by ``reviewer``.

    Raises:
        ConflictError: if another review already claimed or finalized the order.
    """
    claimed = MerchPurchase.objects.filter(
        pk=purchase_id, payment_status=PaymentStatus.PENDING_APPROVAL, reviewed_at__isnull=True
    ).update(reviewed_by=reviewer, reviewed_at=timezone.now(), review_comment=comment, **extra)
    if not claimed:
        raise ConflictError(_("Only orders pending approval can be reviewed."))


def _restore_review_state(purchase_id: UUID, snapshot: dict[str, t.Any]) -> None:
    MerchPurchase.objects.filter(pk=purchase_id).update(**snapshot)
    logger.info("merch_order_review_reverted", purchase_id=str(purchase_id))


def review_order(
    *, reviewer: FestUser, event: Event, registration_id: UUID, status: str, comment: str | None = ""
) -> ReviewResult:
    """Approve or reject an order pending approval.

    Rejection only finalizes the order. Approval takes stock, issues the
    ticket, emails the participant and finalizes the order; any failure undoes
    all of it and leaves the order PENDING_APPROVAL with its previous reviewer
    fields. Orders bought with reserve-at-submit are settled at purchase and
    never reach this point.

    Raises:
        NotFoundError, FestValidationError, ConflictError, DeliveryFailedError
    """
    registration = get_order_registration(registration_id)
    if registration.event_id != event.pk:
        raise NotFoundError(_("Merchandise order not found."))
    decision = (status or "").strip().upper()
    if decision not in (PaymentStatus.APPROVED, PaymentStatus.REJECTED):
        raise FestValidationError(_("status must be APPROVED or REJECTED"), field="status")
    review_comment = (comment or "").strip()
    purchase = registration.merch_purchase
    if purchase.stock_reserved or purchase.payment_status != PaymentStatus.PENDING_APPROVAL:
        raise ConflictError(_("Only orders pending approval can be reviewed."))

    log = logger.bind(registration_id=str(registration_id), reviewer_id=str(reviewer.pk), decision=decision)

    if decision == PaymentStatus.REJECTED:
        now = timezone.now()
        _claim_for_review(
            purchase.pk, reviewer, review_comment, payment_status=PaymentStatus.REJECTED, finalized_at=now
        )
        purchase.refresh_from_db()
        log.info("merch_order_rejected")
        return ReviewResult(purchase=purchase)

    if purchase.quantity < 1:
        raise FestValidationError(_("Invalid order quantity"), field="quantity")
    if purchase.variant.item_id != purchase.item_id or purchase.item.event_id != event.pk:
        raise FestValidationError(_("Invalid merchandise variant for this order"), field="variant_id")
    if purchase.variant.stock_qty < purchase.quantity:
        raise FestValidationError(_("Not enough stock available"), field="quantity")

    snapshot = _review_snapshot(purchase)

    with Saga("merch_approval", registration_id=str(registration_id)) as saga:
        saga.step(
            "claim_review",
            lambda: _claim_for_review(purchase.pk, reviewer, review_comment),
            compensate=lambda _result: _restore_review_state(purchase.pk, snapshot),
        )
        saga.step(
            "reserve_stock",
            lambda: reserve_order_stock(purchase),
            compensate=lambda _result: release_order_stock(purchase.pk, purchase.variant_id, purchase.quantity),
        )
        ticket = saga.step(
            "issue_ticket",
            lambda: ticket_service.issue_ticket(registration),
            compensate=lambda ticket: ticket_service.delete_ticket(ticket.pk),
        )
        email = saga.step(
            "send_confirmation",
            lambda: notification_service.send_ticket_email(
                event=event,
                registration=registration,
                ticket=ticket,
                flow="purchase",
                failure_message=_("Ticket email delivery failed. Order approval reverted."),
            ),
        )
        saga.step(
            "finalize",
            lambda: MerchPurchase.objects.filter(pk=purchase.pk).update(
                payment_status=PaymentStatus.APPROVED, finalized_at=timezone.now()
            ),
        )

    purchase.refresh_from_db()
    log.info("merch_order_approved", ticket_code=ticket.code)
    return ReviewResult(purchase=purchase, ticket=ticket, email=email)
