"""Employee entity."""

import uuid
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Employee:
    name: str
    role: Optional[str] = None
    department: Optional[str] = None
    email: Optional[str] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("Employee name cannot be empty.")
