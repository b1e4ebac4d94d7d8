"""Custom application-wide exceptions."""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from src.common.dtos.ledger_dtos import BulkValidationReportDTO


class ApplicationError(Exception):
    """Base class for application-specific errors."""

    def __init__(
        self, message: str = "An application error occurred", original_exception: Exception | None = None
    ) -> None:
        super().__init__(message)
        self.original_exception = original_exception
        self.message = message

    def __str__(self) -> str:
        if self.original_exception:
            return f"{self.message} (Original error: {self.original_exception})"
        return self.message


class DatabaseError(ApplicationError):
    """Exception raised for errors during database operations."""

    def __init__(self, message: str = "Database operation failed", original_exception: Exception | None = None) -> None:
        super().__init__(message, original_exception)
        self.message = f"Database Error: {message}"


class LedgerError(ApplicationError):
    """Base class for stock ledger and bulk engine errors. All of them are user-correctable."""


class InsufficientStockError(LedgerError):
    """A debit-class operation asked for more on-hand units than the variant holds."""

    def __init__(self, product: str, variant: str, requested: int, available: int) -> None:
        self.product = product
        self.variant = variant
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for {product} / {variant}: requested {requested}, available {available}"
        )


class InsufficientTransitStockError(LedgerError):
    """A transit return asked for more units than are currently in transit."""

    def __init__(self, product: str, variant: str, requested: int, available: int) -> None:
        self.product = product
        self.variant = variant
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient in-transit stock for {product} / {variant}: requested {requested}, in transit {available}"
        )


class ValidationIncompleteError(LedgerError):
    """A required per-row value is missing or not usable (e.g. no variant selected, quantity <= 0)."""

    def __init__(self, missing_field: str, row_index: Optional[int] = None, detail: Optional[str] = None) -> None:
        self.missing_field = missing_field
        self.row_index = row_index
        message = f"Missing or invalid value for '{missing_field}'"
        if row_index is not None:
            message += f" in row {row_index}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class UnknownCatalogReferenceError(LedgerError):
    """A product or variant name does not resolve against the catalog."""

    def __init__(self, product: str, variant: Optional[str] = None) -> None:
        self.product = product
        self.variant = variant
        if variant is None:
            super().__init__(f"Unknown product '{product}'")
        else:
            super().__init__(f"Unknown variant '{variant}' for product '{product}'")


class BulkValidationError(LedgerError):
    """Raised when a bulk submission fails validation; carries every row failure at once."""

    def __init__(self, report: "BulkValidationReportDTO") -> None:
        self.report = report
        count = len(report.failures)
        super().__init__(f"Bulk submission rejected with {count} problem(s); nothing was applied")

    @property
    def failures(self):
        return self.report.failures


class CatalogConflictError(ApplicationError):
    """Catalog change would break a uniqueness rule or leave a dangling reference."""


class DuplicateBarcodeError(CatalogConflictError):
    def __init__(self, barcode: str, owner: str) -> None:
        self.barcode = barcode
        self.owner = owner
        super().__init__(f"Barcode '{barcode}' is already assigned to {owner}")


class RecordNotFoundError(ApplicationError):
    def __init__(self, kind: str, record_id: str) -> None:
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} '{record_id}' not found")
