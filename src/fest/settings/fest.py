"""Settings for the participation engine (tickets, merchandise, attendance, announcements)."""

from decouple import Csv, config

# Ticket credentials are probed for uniqueness this many times before giving up
TICKET_ID_MAX_ATTEMPTS = config("TICKET_ID_MAX_ATTEMPTS", default=10, cast=int)
TICKET_QR_BOX_SIZE = config("TICKET_QR_BOX_SIZE", default=8, cast=int)

PAYMENT_PROOF_ALLOWED_MIME_TYPES = config(
    "PAYMENT_PROOF_ALLOWED_MIME_TYPES", default="application/pdf,image/png,image/jpeg", cast=Csv()
)
PAYMENT_PROOF_MAX_SIZE_MB = config("PAYMENT_PROOF_MAX_SIZE_MB", default=10, cast=int)

ATTENDANCE_SUMMARY_LOG_LIMIT = config("ATTENDANCE_SUMMARY_LOG_LIMIT", default=20, cast=int)

DISCORD_WEBHOOK_TIMEOUT = config("DISCORD_WEBHOOK_TIMEOUT", default=8.0, cast=float)

# Retry policy for blob deletions that failed during saga compensation
BLOB_DELETE_MAX_RETRIES = config("BLOB_DELETE_MAX_RETRIES", default=5, cast=int)
BLOB_DELETE_RETRY_BACKOFF = config("BLOB_DELETE_RETRY_BACKOFF", default=30, cast=int)
# Attempts at writing an upload to storage before the request fails
BLOB_UPLOAD_MAX_ATTEMPTS = config("BLOB_UPLOAD_MAX_ATTEMPTS", default=3, cast=int)
