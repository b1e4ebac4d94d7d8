"""Employee directory repository interface."""
from abc import ABC, abstractmethod
from typing import Optional

from src.assignment_domain.domain.entities.employee import Employee


class IEmployeeRepository(ABC):

    @abstractmethod
    def get_all(self) -> list[Employee]:
        pass

    @abstractmethod
    def get(self, employee_id: str) -> Optional[Employee]:
        pass

    @abstractmethod
    def save(self, employee: Employee) -> None:
        """Inserts or updates an employee."""
        pass

    @abstractmethod
    def delete(self, employee_id: str) -> bool:
        pass

    def close(self) -> None:
        pass
