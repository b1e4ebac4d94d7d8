"""Read-only snapshots handed to presentation and reporting callers."""

from dataclasses import dataclass, field
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class VariantSnapshotDTO:
    id: str
    name: str
    on_hand: int
    in_transit: int
    min_stock: int
    barcodes: tuple[str, ...] = ()


@dataclass(frozen=True)
class ProductSnapshotDTO:
    id: str
    name: str
    category: str
    min_stock_global: int
    price_per_unit: float
    last_purchase_date: Optional[date]
    expiration_date: Optional[date]
    variants: tuple[VariantSnapshotDTO, ...] = ()

    @property
    def total_on_hand(self) -> int:
        return sum(variant.on_hand for variant in self.variants)


@dataclass
class LowStockVariantDTO:
    product_name: str
    variant_name: str
    on_hand: int
    min_stock: int


@dataclass
class ExpiringProductDTO:
    product_name: str
    expiration_date: date
    days_left: int
    status: str


@dataclass
class DashboardSummaryDTO:
    """Aggregated figures shown on the dashboard cards and alert panels."""

    product_count: int
    assignment_count: int
    total_units_on_hand: int
    total_units_in_transit: int
    total_investment: float
    low_stock_products: list[str] = field(default_factory=list)
    low_stock_variants: list[LowStockVariantDTO] = field(default_factory=list)
    expiring_products: list[ExpiringProductDTO] = field(default_factory=list)
    upcoming_renewals: int = 0
