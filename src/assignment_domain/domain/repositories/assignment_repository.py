# src/assignment_domain/domain/repositories/assignment_repository.py
"""Assignment register repository interface."""
from abc import ABC, abstractmethod
from typing import Optional

from src.assignment_domain.domain.entities.assignment import Assignment


class IAssignmentRepository(ABC):

    @abstractmethod
    def add_many(self, assignments: list[Assignment]) -> None:
        """Appends records in the given order, all or nothing."""
        pass

    @abstractmethod
    def get_all(self) -> list[Assignment]:
        """Returns every record in insertion order."""
        pass

    @abstractmethod
    def get(self, record_id: str) -> Optional[Assignment]:
        pass

    @abstractmethod
    def delete(self, record_id: str) -> bool:
        """Removes a record; returns False if it did not exist."""
        pass

    @abstractmethod
    def rename_person(self, old_name: str, new_name: str) -> int:
        """Rewrites person_name on assigned (non-waste) records stored with exactly old_name. Returns the rows changed."""
        pass

    def add(self, assignment: Assignment) -> None:
        self.add_many([assignment])

    def close(self) -> None:
        pass
