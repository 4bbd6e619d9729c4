from dataclasses import dataclass
from fastapi import status


@dataclass(frozen=True)
class ErrorDefinition:
    code: str
    message: str
    status_code: int


class ErrorCatalog:
    INVALID_TOKEN = ErrorDefinition("INVALID_TOKEN", "Invalid token", status.HTTP_401_UNAUTHORIZED)
    INVALID_CREDENTIALS = ErrorDefinition(
        "INVALID_CREDENTIALS",
        "Invalid credentials",
        status.HTTP_401_UNAUTHORIZED,
    )
    USER_INACTIVE = ErrorDefinition(
        "USER_INACTIVE",
        "User is inactive",
        status.HTTP_403_FORBIDDEN,
    )
    PERMISSION_DENIED = ErrorDefinition(
        "PERMISSION_DENIED",
        "Permission denied",
        status.HTTP_403_FORBIDDEN,
    )
    VALIDATION_ERROR = ErrorDefinition(
        "VALIDATION_ERROR",
        "Validation error",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    INSUFFICIENT_STOCK = ErrorDefinition(
        "INSUFFICIENT_STOCK",
        "Insufficient stock",
        status.HTTP_400_BAD_REQUEST,
    )
    INSUFFICIENT_CASH = ErrorDefinition(
        "INSUFFICIENT_CASH",
        "Cash tendered is less than the amount due",
        status.HTTP_400_BAD_REQUEST,
    )
    INVALID_TENDER = ErrorDefinition(
        "INVALID_TENDER",
        "Tender amounts do not match the sale total",
        status.HTTP_400_BAD_REQUEST,
    )
    SALE_NOT_FOUND = ErrorDefinition(
        "SALE_NOT_FOUND",
        "Sale not found",
        status.HTTP_404_NOT_FOUND,
    )
    PRODUCT_NOT_FOUND = ErrorDefinition(
        "PRODUCT_NOT_FOUND",
        "Product not found",
        status.HTTP_404_NOT_FOUND,
    )
    CLIENT_NOT_FOUND = ErrorDefinition(
        "CLIENT_NOT_FOUND",
        "Client not found",
        status.HTTP_404_NOT_FOUND,
    )
    ACCOUNT_NOT_FOUND = ErrorDefinition(
        "ACCOUNT_NOT_FOUND",
        "Receivable account not found",
        status.HTTP_404_NOT_FOUND,
    )
    CLOSING_NOT_FOUND = ErrorDefinition(
        "CLOSING_NOT_FOUND",
        "Register closing not found",
        status.HTTP_404_NOT_FOUND,
    )
    EXCESS_PAYMENT = ErrorDefinition(
        "EXCESS_PAYMENT",
        "Payment exceeds the outstanding balance",
        status.HTTP_400_BAD_REQUEST,
    )
    ACCOUNT_NOT_PAYABLE = ErrorDefinition(
        "ACCOUNT_NOT_PAYABLE",
        "Receivable account does not accept payments",
        status.HTTP_400_BAD_REQUEST,
    )
    NOTHING_TO_CLOSE = ErrorDefinition(
        "NOTHING_TO_CLOSE",
        "There are no open register sales to close",
        status.HTTP_400_BAD_REQUEST,
    )
    RETURN_NOT_ALLOWED = ErrorDefinition(
        "RETURN_NOT_ALLOWED",
        "Return quantity exceeds the quantity sold",
        status.HTTP_400_BAD_REQUEST,
    )
    CONCURRENT_UPDATE = ErrorDefinition(
        "CONCURRENT_UPDATE",
        "Resource was modified by a concurrent request",
        status.HTTP_409_CONFLICT,
    )
    LOCK_TIMEOUT = ErrorDefinition(
        "LOCK_TIMEOUT",
        "Lock wait timeout",
        status.HTTP_409_CONFLICT,
    )
    STORAGE_FAILURE = ErrorDefinition(
        "STORAGE_FAILURE",
        "Storage unavailable",
        status.HTTP_503_SERVICE_UNAVAILABLE,
    )
    INTERNAL_ERROR = ErrorDefinition(
        "INTERNAL_ERROR",
        "Internal server error",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    IDEMPOTENCY_KEY_REUSED_WITH_DIFFERENT_PAYLOAD = ErrorDefinition(
        "IDEMPOTENCY_KEY_REUSED_WITH_DIFFERENT_PAYLOAD",
        "Idempotency key reused with different payload",
        status.HTTP_409_CONFLICT,
    )
    IDEMPOTENCY_REQUEST_IN_PROGRESS = ErrorDefinition(
        "IDEMPOTENCY_REQUEST_IN_PROGRESS",
        "Idempotency request already in progress",
        status.HTTP_409_CONFLICT,
    )
    IDEMPOTENCY_REPLAY = ErrorDefinition(
        "IDEMPOTENCY_REPLAY",
        "Idempotent replay",
        status.HTTP_200_OK,
    )


class AppError(Exception):
    def __init__(self, error: ErrorDefinition, details: object | None = None):
        self.error = error
        self.details = details
        super().__init__(error.message)
