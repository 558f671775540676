"""Common module: shared utilities for HR Desk."""

from hrdesk.common.constants import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    TIMEZONE,
    AttendanceStatus,
    BatchStatus,
    LeaveStatus,
    NotificationType,
    PaymentStatus,
    TransferStatus,
    UserRole,
    is_active_status,
)
from hrdesk.common.exceptions import (
    AppException,
    BackendError,
    ConflictError,
    ForbiddenException,
    NotFoundException,
    ValidationException,
    register_exception_handlers,
)
from hrdesk.common.export import file_response, rows_to_csv, rows_to_xlsx
from hrdesk.common.pagination import (
    PaginatedResponse,
    PaginationMeta,
    PaginationParams,
    paginate,
)

__all__ = [
    # Constants / Enums
    "AttendanceStatus",
    "BatchStatus",
    "LeaveStatus",
    "NotificationType",
    "PaymentStatus",
    "TransferStatus",
    "UserRole",
    "TIMEZONE",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "is_active_status",
    # Exceptions
    "AppException",
    "BackendError",
    "ConflictError",
    "ForbiddenException",
    "NotFoundException",
    "ValidationException",
    "register_exception_handlers",
    # Export
    "file_response",
    "rows_to_csv",
    "rows_to_xlsx",
    # Pagination
    "PaginatedResponse",
    "PaginationMeta",
    "PaginationParams",
    "paginate",
]
