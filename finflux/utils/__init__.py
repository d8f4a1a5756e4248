"""Utilidades de FinFlux Console."""

from finflux.utils.errors import (
    FinfluxError,
    BackendError,
    BackendUnavailableError,
    ValidationError,
    AuthError,
    AccessDeniedError,
    NotificationError,
    UploadError,
    ErrorCategory,
    ErrorContext,
    log_error,
    with_error_handling,
)

from finflux.utils.notices import (
    Notice,
    NoticeVariant,
    notice_from_error,
    success,
)

from finflux.utils.formatting import (
    format_inr,
    format_bytes,
    format_liters,
    to_local_datetime,
    local_now,
    local_today,
    hours_between,
)

__all__ = [
    # Errors
    "FinfluxError",
    "BackendError",
    "BackendUnavailableError",
    "ValidationError",
    "AuthError",
    "AccessDeniedError",
    "NotificationError",
    "UploadError",
    "ErrorCategory",
    "ErrorContext",
    "log_error",
    "with_error_handling",
    # Notices
    "Notice",
    "NoticeVariant",
    "notice_from_error",
    "success",
    # Formatting
    "format_inr",
    "format_bytes",
    "format_liters",
    "to_local_datetime",
    "local_now",
    "local_today",
    "hours_between",
]
