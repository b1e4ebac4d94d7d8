"""MySQL implementation of the employee directory repository."""

from typing import Optional

from src.assignment_domain.domain.entities.employee import Employee
from src.assignment_domain.domain.repositories.employee_repository import IEmployeeRepository
from src.common.persistence.mysql_base import MySQLRepositoryBase


class MySQLEmployeeRepository(MySQLRepositoryBase, IEmployeeRepository):
    table_definitions = [
        """
        CREATE TABLE IF NOT EXISTS inv_employees (
            id CHAR(32) PRIMARY KEY,
            seq BIGINT UNSIGNED NOT NULL AUTO_INCREMENT,
            name VARCHAR(255) NOT NULL,
            role VARCHAR(255),
            department VARCHAR(255),
            email VARCHAR(255),
            UNIQUE KEY uk_employee_seq (seq),
            INDEX idx_employee_name (name)
        ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;
        """,
    ]

    @staticmethod
    def _row_to_employee(row: dict) -> Employee:
        return Employee(
            id=row["id"], name=row["name"], role=row["role"], department=row["department"], email=row["email"]
        )

    def get_all(self) -> list[Employee]:
        rows = self._fetch_all(
            "SELECT id, name, role, department, email FROM inv_employees ORDER BY seq", (), "Error fetching employees"
        )
        return [self._row_to_employee(row) for row in rows]

    def get(self, employee_id: str) -> Optional[Employee]:
        rows = self._fetch_all(
            "SELECT id, name, role, department, email FROM inv_employees WHERE id = %s LIMIT 1",
            (employee_id,),
            f"Error fetching employee {employee_id}",
        )
        return self._row_to_employee(rows[0]) if rows else None

    def save(self, employee: Employee) -> None:
        self._execute_write(
            """
            INSERT INTO inv_employees (id, name, role, department, email)
            VALUES (%s, %s, %s, %s, %s)
            ON DUPLICATE KEY UPDATE
            name = VALUES(name),
            role = VALUES(role),
            department = VALUES(department),
            email = VALUES(email)
            """,
            (employee.id, employee.name, employee.role, employee.department, employee.email),
            f"Error saving employee {employee.name}",
        )

    def delete(self, employee_id: str) -> bool:
        deleted = self._execute_write(
            "DELETE FROM inv_employees WHERE id = %s", (employee_id,), f"Error deleting employee {employee_id}"
        )
        return deleted > 0
