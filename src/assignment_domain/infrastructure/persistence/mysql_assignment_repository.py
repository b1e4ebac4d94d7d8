# src/assignment_domain/infrastructure/persistence/mysql_assignment_repository.py
"""MySQL implementation of the assignment register repository."""

import logging
from typing import Optional

from mysql.connector import Error

from src.assignment_domain.domain.entities.assignment import Assignment, EntryKind
from src.assignment_domain.domain.repositories.assignment_repository import IAssignmentRepository
from src.common.exceptions.custom_exceptions import DatabaseError
from src.common.persistence.mysql_base import MySQLRepositoryBase
from src.common.utils.date_utils import format_date_for_db, parse_date

logger = logging.getLogger(__name__)

_SELECT_COLUMNS = """
    id, person_name, product_name, variant_name, assignment_date, quantity,
    renewal_date, kind, employee_id, product_id, variant_id
"""


class MySQLAssignmentRepository(MySQLRepositoryBase, IAssignmentRepository):
    """Stores register entries in 'inv_assignments'; insertion order is kept by the auto-increment seq."""

    table_definitions = [
        """
        CREATE TABLE IF NOT EXISTS inv_assignments (
            id CHAR(32) PRIMARY KEY,
            seq BIGINT UNSIGNED NOT NULL AUTO_INCREMENT,
            person_name VARCHAR(255) NOT NULL,
            product_name VARCHAR(255) NOT NULL,
            variant_name VARCHAR(255) NOT NULL,
            assignment_date DATE NOT NULL,
            quantity INT UNSIGNED NOT NULL,
            renewal_date DATE,
            kind VARCHAR(20) NOT NULL DEFAULT 'assigned',
            employee_id CHAR(32),
            product_id CHAR(32),
            variant_id CHAR(32),
            UNIQUE KEY uk_assignment_seq (seq),
            INDEX idx_assignment_person (person_name),
            INDEX idx_assignment_renewal (renewal_date)
        ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;
        """,
    ]

    @staticmethod
    def _row_to_assignment(row: dict) -> Assignment:
        return Assignment(
            id=row["id"],
            person_name=row["person_name"],
            product_name=row["product_name"],
            variant_name=row["variant_name"],
            assignment_date=parse_date(row["assignment_date"]),
            quantity=int(row["quantity"]),
            renewal_date=parse_date(row["renewal_date"]),
            kind=EntryKind(row["kind"]),
            employee_id=row["employee_id"],
            product_id=row["product_id"],
            variant_id=row["variant_id"],
        )

    def add_many(self, assignments: list[Assignment]) -> None:
        """Batch insert in one transaction so a bulk commit never leaves half its records behind."""
        if not assignments:
            return

        conn = self._get_connection()
        cursor = conn.cursor()
        insert_query = """
        INSERT INTO inv_assignments
        (id, person_name, product_name, variant_name, assignment_date, quantity,
         renewal_date, kind, employee_id, product_id, variant_id)
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
        """
        params_list = [
            (
                record.id,
                record.person_name,
                record.product_name,
                record.variant_name,
                format_date_for_db(record.assignment_date),
                record.quantity,
                format_date_for_db(record.renewal_date),
                record.kind.value,
                record.employee_id,
                record.product_id,
                record.variant_id,
            )
            for record in assignments
        ]
        try:
            cursor.executemany(insert_query, params_list)
            conn.commit()
            logger.debug(f"Inserted {len(assignments)} assignment record(s)")
        except Error as e:
            conn.rollback()
            raise DatabaseError(f"Error inserting assignment records: {e}", original_exception=e)
        finally:
            cursor.close()

    def get_all(self) -> list[Assignment]:
        rows = self._fetch_all(
            f"SELECT {_SELECT_COLUMNS} FROM inv_assignments ORDER BY seq", (), "Error fetching assignment records"
        )
        return [self._row_to_assignment(row) for row in rows]

    def get(self, record_id: str) -> Optional[Assignment]:
        rows = self._fetch_all(
            f"SELECT {_SELECT_COLUMNS} FROM inv_assignments WHERE id = %s LIMIT 1",
            (record_id,),
            f"Error fetching assignment {record_id}",
        )
        return self._row_to_assignment(rows[0]) if rows else None

    def delete(self, record_id: str) -> bool:
        deleted = self._execute_write(
            "DELETE FROM inv_assignments WHERE id = %s", (record_id,), f"Error deleting assignment {record_id}"
        )
        return deleted > 0

    def rename_person(self, old_name: str, new_name: str) -> int:
        return self._execute_write(
            "UPDATE inv_assignments SET person_name = %s WHERE person_name = %s COLLATE utf8mb4_bin AND kind = %s",
            (new_name, old_name, EntryKind.ASSIGNED.value),
            f"Error renaming person {old_name}",
        )
