"""Variant entity: one size/category of a product, the unit of stock accounting."""

import uuid
from dataclasses import dataclass, field


def new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class Variant:
    """Per-variant stock counters. Quantities are never negative."""

    name: str
    on_hand: int = 0
    min_stock: int = 0
    in_transit: int = 0
    barcodes: set[str] = field(default_factory=set)
    id: str = field(default_factory=new_id)

    def __post_init__(self) -> None:
        """Post-initialization for validation."""
        if not self.name or not self.name.strip():
            raise ValueError("Variant name cannot be empty.")
        for label, value in (("On-hand", self.on_hand), ("Minimum stock", self.min_stock), ("In-transit", self.in_transit)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{label} quantity must be an integer.")
            if value < 0:
                raise ValueError(f"{label} quantity cannot be negative.")
        self.barcodes = {code.strip() for code in self.barcodes if code and code.strip()}

    def is_below_min_stock(self) -> bool:
        return self.on_hand < self.min_stock
