# src/assignment_domain/application/employee_directory_service.py
import logging
from typing import Optional

from src.assignment_domain.application.assignment_register import AssignmentRegister
from src.assignment_domain.domain.entities.assignment import Assignment
from src.assignment_domain.domain.entities.employee import Employee
from src.assignment_domain.domain.repositories.employee_repository import IEmployeeRepository
from src.common.exceptions.custom_exceptions import CatalogConflictError, RecordNotFoundError, ValidationIncompleteError
from src.common.utils.locking import person_key
from src.common.utils.name_utils import clean_name, normalize_name

logger = logging.getLogger(__name__)

_EDITABLE_EMPLOYEE_FIELDS = {"name", "role", "department", "email"}


class EmployeeDirectoryService:
    """
    Employee records used to pick assignees.

    The directory is a convenience for selection: the register keeps its own name
    snapshots, so deleting an employee leaves their history in place.
    """

    def __init__(self, employee_repo: IEmployeeRepository, register: AssignmentRegister) -> None:
        self.employee_repo = employee_repo
        self.register = register

    def add_employee(
        self,
        name: str,
        role: Optional[str] = None,
        department: Optional[str] = None,
        email: Optional[str] = None,
    ) -> Employee:
        employee_name = clean_name(name)
        if not employee_name:
            raise ValidationIncompleteError("name")
        if self.find_by_name(employee_name) is not None:
            raise CatalogConflictError(f"Employee '{employee_name}' already exists")
        employee = Employee(name=employee_name, role=role, department=department, email=email)
        self.employee_repo.save(employee)
        logger.info(f"Added employee '{employee.name}'")
        return employee

    def update_employee(self, employee_id: str, **changes) -> Employee:
        """Edits an employee. A name change is carried over to every register entry of the old name."""
        unknown = set(changes) - _EDITABLE_EMPLOYEE_FIELDS
        if unknown:
            raise ValueError(f"Unknown employee field(s): {', '.join(sorted(unknown))}")

        employee = self.get_employee(employee_id)
        old_name = employee.name
        new_name = old_name
        if "name" in changes:
            new_name = clean_name(changes["name"])
            if not new_name:
                raise ValidationIncompleteError("name")
            clash = self.find_by_name(new_name)
            if clash is not None and clash.id != employee.id:
                raise CatalogConflictError(f"Employee '{new_name}' already exists")

        for field_name in ("role", "department", "email"):
            if field_name in changes:
                setattr(employee, field_name, changes[field_name])

        if new_name == old_name:
            self.employee_repo.save(employee)
            return employee

        # The person locks are re-entrant, so rename_actor can take them again
        with self.register.lock_manager.hold([person_key(old_name), person_key(new_name)]):
            employee.name = new_name
            self.employee_repo.save(employee)
            renamed = self.register.rename_actor(old_name, new_name)
        logger.info(f"Renamed employee '{old_name}' to '{new_name}' ({renamed} register entr(y/ies) updated)")
        return employee

    def delete_employee(self, employee_id: str) -> Employee:
        employee = self.get_employee(employee_id)
        self.employee_repo.delete(employee_id)
        logger.info(f"Deleted employee '{employee.name}'; register history kept")
        return employee

    def get_employee(self, employee_id: str) -> Employee:
        employee = self.employee_repo.get(employee_id)
        if employee is None:
            raise RecordNotFoundError("Employee", employee_id)
        return employee

    def find_by_name(self, name: Optional[str]) -> Optional[Employee]:
        key = normalize_name(name)
        if not key:
            return None
        return next((employee for employee in self.employee_repo.get_all() if normalize_name(employee.name) == key), None)

    def list_employees(self, search: Optional[str] = None) -> list[Employee]:
        employees = sorted(self.employee_repo.get_all(), key=lambda employee: normalize_name(employee.name))
        if not search:
            return employees
        needle = search.casefold()
        return [
            employee
            for employee in employees
            if needle in employee.name.casefold() or (employee.role and needle in employee.role.casefold())
        ]

    def assignments_for(self, employee_id: str) -> list[Assignment]:
        employee = self.get_employee(employee_id)
        return self.register.records_for_person(employee.name)
