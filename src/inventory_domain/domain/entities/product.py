"""Product entity."""

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from src.common.utils.name_utils import normalize_name

from .variant import Variant, new_id


@dataclass
class Product:
    """A stocked item (e.g. a helmet model) with one or more variants."""

    name: str
    category: str
    variants: list[Variant]
    min_stock_global: int = 0
    last_purchase_date: Optional[date] = None
    expiration_date: Optional[date] = None
    price_per_unit: float = 0.0
    id: str = field(default_factory=new_id)

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("Product name cannot be empty.")
        if not self.variants:
            raise ValueError("A product needs at least one variant.")
        if self.min_stock_global < 0:
            raise ValueError("Minimum stock cannot be negative.")
        if self.price_per_unit < 0:
            raise ValueError("Price cannot be negative.")
        seen: set[str] = set()
        for variant in self.variants:
            key = normalize_name(variant.name)
            if key in seen:
                raise ValueError(f"Duplicate variant '{variant.name}' in product '{self.name}'.")
            seen.add(key)

    def find_variant(self, name: Optional[str]) -> Optional[Variant]:
        key = normalize_name(name)
        for variant in self.variants:
            if normalize_name(variant.name) == key:
                return variant
        return None

    def get_variant_by_id(self, variant_id: str) -> Optional[Variant]:
        return next((variant for variant in self.variants if variant.id == variant_id), None)

    def total_on_hand(self) -> int:
        return sum(variant.on_hand for variant in self.variants)

    def total_in_transit(self) -> int:
        return sum(variant.in_transit for variant in self.variants)

    def has_single_variant(self) -> bool:
        return len(self.variants) == 1
