"""Bulk assignment plan: one product handed to several people in a single submission."""

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from src.common.utils.date_utils import parse_date
from src.common.utils.name_utils import clean_name, normalize_name

# Renewal presets offered when planning (months); 0 means the item is not renewed
RENEWAL_PERIOD_OPTIONS = (0, 6, 12, 24, 36, 48, 60)


@dataclass
class PlannedAssignment:
    person_name: str
    variant_name: Optional[str] = None
    quantity: int = 1
    renewal_months: int = 0


@dataclass
class BulkAssignmentPlan:
    """
    Detail phase of a bulk assignment.

    Holds per-person selections until the plan is committed. Nothing here touches
    stock; the service validates and applies the plan as a whole.
    """

    product_name: str
    product_id: Optional[str] = None
    available_variants: list[str] = field(default_factory=list)
    assignment_date: Optional[date] = None
    lines: list[PlannedAssignment] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.product_name or not self.product_name.strip():
            raise ValueError("A bulk assignment plan needs a product.")
        self.assignment_date = parse_date(self.assignment_date)

    @classmethod
    def for_people(
        cls,
        product_name: str,
        person_names: list[str],
        available_variants: list[str],
        assignment_date: Optional[date] = None,
        product_id: Optional[str] = None,
    ) -> "BulkAssignmentPlan":
        """Builds a plan with one line per distinct person, first-seen order kept."""
        plan = cls(
            product_name=product_name,
            product_id=product_id,
            available_variants=list(available_variants),
            assignment_date=assignment_date,
        )
        seen: set[str] = set()
        default_variant = available_variants[0] if len(available_variants) == 1 else None
        for raw_name in person_names:
            name = clean_name(raw_name)
            if not name or normalize_name(name) in seen:
                continue
            seen.add(normalize_name(name))
            plan.lines.append(PlannedAssignment(person_name=name, variant_name=default_variant))
        return plan

    @property
    def person_names(self) -> list[str]:
        return [line.person_name for line in self.lines]

    def line_for(self, person_name: str) -> PlannedAssignment:
        key = normalize_name(person_name)
        for line in self.lines:
            if normalize_name(line.person_name) == key:
                return line
        raise ValueError(f"'{person_name}' is not part of this bulk assignment")

    def set_variant(self, person_name: str, variant_name: Optional[str]) -> None:
        self.line_for(person_name).variant_name = clean_name(variant_name) or None

    def set_quantity(self, person_name: str, quantity: int) -> None:
        self.line_for(person_name).quantity = quantity

    def set_renewal(self, person_name: str, months: int) -> None:
        self.line_for(person_name).renewal_months = months

    def set_assignment_date(self, assignment_date: date | str | None) -> None:
        self.assignment_date = parse_date(assignment_date)

    def missing_selections(self) -> list[str]:
        """People that still have no variant picked."""
        return [line.person_name for line in self.lines if not line.variant_name]
