from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import MinValueValidator
from django.db import models

from common.models import StoredBlob, TimeStampedModel

from .event import Event
from .registration import Registration


class MerchItem(TimeStampedModel):
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="merch_items")
    item_id = models.SlugField(max_length=64)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    purchase_limit_per_participant = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(fields=["event", "item_id"], name="unique_merch_item_per_event"),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.item_id})"

    def clean(self) -> None:
        """Only merchandise events can carry items."""
        super().clean()
        if self.event_id and self.event.event_type != Event.EventType.MERCHANDISE:
            raise DjangoValidationError({"event": ["Only merchandise events can have items."]})


class MerchVariant(TimeStampedModel):
    item = models.ForeignKey(MerchItem, on_delete=models.CASCADE, related_name="variants")
    variant_id = models.SlugField(max_length=64)
    label = models.CharField(max_length=255)
    size = models.CharField(max_length=32, blank=True, default="")
    color = models.CharField(max_length=32, blank=True, default="")
    price = models.DecimalField(max_digits=10, decimal_places=2, default=0, validators=[MinValueValidator(0)])
    stock_qty = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(fields=["item", "variant_id"], name="unique_merch_variant_per_item"),
            models.CheckConstraint(condition=models.Q(stock_qty__gte=0), name="merch_variant_stock_non_negative"),
        ]

    def __str__(self) -> str:
        return f"{self.item.name} / {self.label}"


class MerchPurchase(TimeStampedModel):
    """The order embedded in a merchandise registration."""

    class PaymentStatus(models.TextChoices):
        PAYMENT_PENDING = "PAYMENT_PENDING", "Payment pending"
        PENDING_APPROVAL = "PENDING_APPROVAL", "Pending approval"
        APPROVED = "APPROVED", "Approved"
        REJECTED = "REJECTED", "Rejected"

    registration = models.OneToOneField(Registration, on_delete=models.CASCADE, related_name="merch_purchase")
    item = models.ForeignKey(MerchItem, on_delete=models.CASCADE, related_name="purchases")
    variant = models.ForeignKey(MerchVariant, on_delete=models.CASCADE, related_name="purchases")
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    # True while the order holds units taken from stock (at purchase or on approval)
    stock_reserved = models.BooleanField(default=False)
    payment_status = models.CharField(
        max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.PAYMENT_PENDING, db_index=True
    )
    payment_proof = models.ForeignKey(
        StoredBlob, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    payment_proof_uploaded_at = models.DateTimeField(null=True, blank=True)
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    reviewed_at = models.DateTimeField(null=True, blank=True)
    review_comment = models.TextField(blank=True, default="")
    finalized_at = models.DateTimeField(null=True, blank=True)

    REVIEW_FIELDS = ("payment_status", "reviewed_by", "reviewed_at", "review_comment", "finalized_at")

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.quantity} x {self.variant} [{self.payment_status}]"

    def clean(self) -> None:
        """The variant must belong to the item."""
        super().clean()
        if self.variant_id and self.item_id and self.variant.item_id != self.item_id:
            raise DjangoValidationError({"variant": ["Variant does not belong to the selected item."]})
