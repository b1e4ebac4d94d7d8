"""Groups bulk rows by (product, variant) so each variant is checked and debited once."""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from src.common.utils.name_utils import normalize_name


@dataclass
class DemandLine:
    product_name: str
    variant_name: str
    quantity: int = 0
    row_indexes: list[int] = field(default_factory=list)
    person_names: list[str] = field(default_factory=list)

    @property
    def key(self) -> tuple[str, str]:
        return demand_key(self.product_name, self.variant_name)


@dataclass
class DemandEntry:
    row_index: int
    product_name: str
    variant_name: str
    quantity: int
    person_name: Optional[str] = None


def demand_key(product_name: str, variant_name: str) -> tuple[str, str]:
    return normalize_name(product_name), normalize_name(variant_name)


def aggregate_demand(entries: Iterable[DemandEntry]) -> list[DemandLine]:
    """
    Sums quantities per (product, variant), case-insensitively.

    Lines come back in first-seen order and keep the first-seen spelling of the names.
    """
    lines: dict[tuple[str, str], DemandLine] = {}
    for entry in entries:
        key = demand_key(entry.product_name, entry.variant_name)
        line = lines.get(key)
        if line is None:
            line = DemandLine(product_name=entry.product_name, variant_name=entry.variant_name)
            lines[key] = line
        line.quantity += entry.quantity
        line.row_indexes.append(entry.row_index)
        if entry.person_name:
            line.person_names.append(entry.person_name)
    return list(lines.values())
