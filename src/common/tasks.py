"""Common tasks."""

import typing as t

import structlog
from celery import shared_task
from django.conf import settings

from common.blobs import BlobStorageError, delete_blob

logger = structlog.get_logger(__name__)


@shared_task(bind=True, max_retries=settings.BLOB_DELETE_MAX_RETRIES)
def delete_blob_task(self: t.Any, blob_id: str) -> bool:
    """Retry the deletion of a blob whose compensation failed inline.

    Args:
        blob_id: The id of the StoredBlob to delete.

    Returns:
        True if the blob was removed, False if it was already gone.
    """
    try:
        return delete_blob(blob_id)
    except BlobStorageError as e:
        countdown = settings.BLOB_DELETE_RETRY_BACKOFF * 2**self.request.retries
        logger.warning(
            "retrying_blob_delete",
            blob_id=blob_id,
            countdown=countdown,
            retry_count=self.request.retries,
        )
        raise self.retry(exc=e, countdown=countdown)
