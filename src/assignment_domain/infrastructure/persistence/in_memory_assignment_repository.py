"""In-process implementations of the assignment and employee repositories."""

import copy
import threading
from typing import Optional

from src.assignment_domain.domain.entities.assignment import Assignment, EntryKind
from src.assignment_domain.domain.entities.employee import Employee
from src.assignment_domain.domain.repositories.assignment_repository import IAssignmentRepository
from src.assignment_domain.domain.repositories.employee_repository import IEmployeeRepository


class InMemoryAssignmentRepository(IAssignmentRepository):
    def __init__(self) -> None:
        self._records: dict[str, Assignment] = {}
        self._lock = threading.Lock()

    def add_many(self, assignments: list[Assignment]) -> None:
        with self._lock:
            duplicates = [record.id for record in assignments if record.id in self._records]
            if duplicates:
                raise ValueError(f"Assignment id(s) already recorded: {', '.join(duplicates)}")
            for record in assignments:
                self._records[record.id] = copy.deepcopy(record)

    def get_all(self) -> list[Assignment]:
        with self._lock:
            return [copy.deepcopy(record) for record in self._records.values()]

    def get(self, record_id: str) -> Optional[Assignment]:
        with self._lock:
            record = self._records.get(record_id)
            return copy.deepcopy(record) if record else None

    def delete(self, record_id: str) -> bool:
        with self._lock:
            return self._records.pop(record_id, None) is not None

    def rename_person(self, old_name: str, new_name: str) -> int:
        changed = 0
        with self._lock:
            for record in self._records.values():
                if record.kind == EntryKind.ASSIGNED and record.person_name == old_name:
                    record.person_name = new_name
                    changed += 1
        return changed


class InMemoryEmployeeRepository(IEmployeeRepository):
    def __init__(self) -> None:
        self._employees: dict[str, Employee] = {}
        self._lock = threading.Lock()

    def get_all(self) -> list[Employee]:
        with self._lock:
            return [copy.deepcopy(employee) for employee in self._employees.values()]

    def get(self, employee_id: str) -> Optional[Employee]:
        with self._lock:
            employee = self._employees.get(employee_id)
            return copy.deepcopy(employee) if employee else None

    def save(self, employee: Employee) -> None:
        with self._lock:
            self._employees[employee.id] = copy.deepcopy(employee)

    def delete(self, employee_id: str) -> bool:
        with self._lock:
            return self._employees.pop(employee_id, None) is not None
