import typing as t
import uuid

from django.db import models


class TimeStampedModel(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True, db_index=True)

    class Meta:
        abstract = True

    def save(self, *args: t.Any, **kwargs: t.Any) -> None:
        """Override the save method to call full_clean before saving."""
        self.full_clean()
        super().save(*args, **kwargs)


def blob_upload_path(instance: "StoredBlob", filename: str) -> str:
    """Blobs are stored under their own opaque id so that names never collide."""
    return f"blobs/{instance.id}/{filename}"


class StoredBlob(TimeStampedModel):
    """An uploaded file addressed by an opaque id.

    Registration form uploads and merchandise payment proofs are stored here; the
    owning record keeps only the blob id.
    """

    file = models.FileField(upload_to=blob_upload_path, max_length=500)
    name = models.CharField(max_length=255)
    mime_type = models.CharField(max_length=127)
    size = models.PositiveBigIntegerField()
    sha256 = models.CharField(max_length=64, db_index=True)
    metadata = models.JSONField(default=dict, blank=True)

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.name} ({self.id})"
