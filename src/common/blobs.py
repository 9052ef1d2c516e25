"""Blob store backed by Django's default storage.

Uploads are hashed while they are read so the content hash is recorded next to
the file. Deletion is idempotent: deleting an unknown id is a no-op.
"""

import hashlib
import typing as t
from uuid import UUID

import structlog
from django.conf import settings
from django.core.files.uploadedfile import UploadedFile
from django.db import transaction
from django.utils.text import get_valid_filename

from common.models import StoredBlob

logger = structlog.get_logger(__name__)


class BlobStorageError(Exception):
    """Raised when the underlying storage cannot save or delete a blob."""


def compute_sha256(file: UploadedFile) -> str:
    """Hash an uploaded file chunk by chunk and rewind it."""
    hasher = hashlib.sha256()
    for chunk in file.chunks():
        hasher.update(chunk)
    file.seek(0)
    return hasher.hexdigest()


def upload_blob(file: UploadedFile, *, metadata: dict[str, t.Any] | None = None) -> StoredBlob:
    """Store an uploaded file and return its blob record.

    The write is attempted up to ``BLOB_UPLOAD_MAX_ATTEMPTS`` times.

    Raises:
        BlobStorageError: if every attempt to write the file failed.
    """
    name = get_valid_filename(file.name or "upload") or "upload"
    blob = StoredBlob(
        name=file.name or name,
        mime_type=file.content_type or "application/octet-stream",
        size=file.size or 0,
        sha256=compute_sha256(file),
        metadata=metadata or {},
    )
    attempts = max(settings.BLOB_UPLOAD_MAX_ATTEMPTS, 1)
    for attempt in range(1, attempts + 1):
        try:
            blob.file.save(name, file, save=False)
            break
        except OSError as e:
            logger.warning("blob_upload_failed", file_name=name, attempt=attempt, error=str(e))
            if attempt == attempts:
                raise BlobStorageError(f"Could not store {name}.") from e
            file.seek(0)
    blob.save()
    logger.info("blob_uploaded", blob_id=str(blob.id), size=blob.size, mime_type=blob.mime_type)
    return blob


def delete_blob(blob_id: UUID | str) -> bool:
    """Delete a blob and its file.

    Returns:
        True if a blob was deleted, False if it did not exist.

    Raises:
        BlobStorageError: if the storage backend fails to remove the file.
    """
    blob = StoredBlob.objects.filter(pk=blob_id).first()
    if blob is None:
        return False
    try:
        blob.file.delete(save=False)
    except OSError as e:
        logger.warning("blob_delete_failed", blob_id=str(blob_id), error=str(e))
        raise BlobStorageError(f"Could not delete blob {blob_id}.") from e
    blob.delete()
    logger.info("blob_deleted", blob_id=str(blob_id))
    return True


def delete_blob_or_schedule_retry(blob_id: UUID | str) -> None:
    """Best-effort deletion used by compensations.

    A failure is logged and handed to a background retry; it never propagates.
    """
    from common.tasks import delete_blob_task

    try:
        delete_blob(blob_id)
    except BlobStorageError:
        logger.warning("blob_delete_scheduled_for_retry", blob_id=str(blob_id))
        transaction.on_commit(lambda: delete_blob_task.delay(str(blob_id)))
