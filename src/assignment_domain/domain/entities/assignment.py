"""Assignment register entry."""

import uuid
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional

# Display actor kept on waste/exit entries so name-only readers still classify them
WASTE_ACTOR_NAME = "MERMA / SALIDA"


class EntryKind(str, Enum):
    ASSIGNED = "assigned"
    WASTE_EXIT = "waste_exit"


@dataclass
class Assignment:
    """One ledger-originated movement: units handed to a person, or removed from stock as waste."""

    person_name: str
    product_name: str
    variant_name: str
    assignment_date: date
    quantity: int
    renewal_date: Optional[date] = None
    kind: EntryKind = EntryKind.ASSIGNED
    employee_id: Optional[str] = None
    product_id: Optional[str] = None
    variant_id: Optional[str] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self) -> None:
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int) or self.quantity < 1:
            raise ValueError("Assignment quantity must be a positive integer.")
        if not self.person_name or not self.person_name.strip():
            raise ValueError("Assignment needs a person name.")
        self.kind = EntryKind(self.kind)

    @property
    def is_waste(self) -> bool:
        return self.kind == EntryKind.WASTE_EXIT
