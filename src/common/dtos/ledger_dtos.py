"""Data Transfer Objects for stock ledger and bulk operations."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional


class StockMode(str, Enum):
    """Movement kind applied to every row of a bulk stock submission."""

    ENTRY = "entry"
    EXIT = "exit"
    TRANSIT_OUT = "transit_out"
    TRANSIT_RETURN = "transit_return"


class FailureReason(str, Enum):
    INSUFFICIENT_STOCK = "insufficient_stock"
    INSUFFICIENT_TRANSIT_STOCK = "insufficient_transit_stock"
    VALIDATION_INCOMPLETE = "validation_incomplete"
    UNKNOWN_CATALOG_REFERENCE = "unknown_catalog_reference"


@dataclass
class StockMovementRowDTO:
    """One (product, variant, quantity) row of a bulk stock form."""

    product_name: str
    variant_name: Optional[str] = None
    quantity: int = 0


@dataclass
class RowFailureDTO:
    """A single problem found while validating a bulk submission."""

    reason: FailureReason
    row_indexes: list[int] = field(default_factory=list)
    product_name: Optional[str] = None
    variant_name: Optional[str] = None
    person_name: Optional[str] = None
    requested: Optional[int] = None
    available: Optional[int] = None
    missing_field: Optional[str] = None
    message: str = ""


@dataclass
class BulkValidationReportDTO:
    """All row-level failures of one submission; empty means the submission can be applied."""

    failures: list[RowFailureDTO] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.failures

    def add(self, failure: RowFailureDTO) -> None:
        self.failures.append(failure)

    def failures_for_row(self, row_index: int) -> list[RowFailureDTO]:
        return [failure for failure in self.failures if row_index in failure.row_indexes]


@dataclass
class AppliedStockLineDTO:
    """A merged (product, variant) line as it was applied to the ledger."""

    product_name: str
    variant_name: str
    quantity: int
    row_indexes: list[int]
    on_hand_after: int
    in_transit_after: int
    created_product: bool = False
    created_variant: bool = False
    exit_record_id: Optional[str] = None


@dataclass
class BulkStockResultDTO:
    mode: StockMode
    movement_date: date
    lines: list[AppliedStockLineDTO] = field(default_factory=list)

    @property
    def total_quantity(self) -> int:
        return sum(line.quantity for line in self.lines)


@dataclass
class BulkAssignmentResultDTO:
    product_name: str
    assignment_date: date
    assignment_ids: list[str] = field(default_factory=list)
    # variant name -> on-hand after the commit
    remaining_on_hand: dict[str, int] = field(default_factory=dict)
