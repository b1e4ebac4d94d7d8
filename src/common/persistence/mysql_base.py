# src/common/persistence/mysql_base.py
"""Connection handling shared by the MySQL repositories."""

import logging

import mysql.connector
from mysql.connector import Error

from src.common.config.settings import settings
from src.common.exceptions.custom_exceptions import DatabaseError

logger = logging.getLogger(__name__)


class MySQLRepositoryBase:
    """Lazily opens one connection per repository; writes commit or roll back explicitly."""

    table_definitions: list[str] = []

    def __init__(self) -> None:
        """Initializes the repository."""
        self._connection = None

    def _get_connection(self):
        """Establishes or returns an active MySQL database connection."""
        if not self._connection or not self._connection.is_connected():
            try:
                self._connection = mysql.connector.connect(
                    host=settings.DB_HOST,
                    database=settings.DB_DATABASE,
                    user=settings.DB_USER,
                    password=settings.DB_PASSWORD,
                    autocommit=False,  # Better control over transactions
                    charset="utf8mb4",
                    use_unicode=True,
                )
            except Error as e:
                raise DatabaseError(f"Failed to connect to MySQL: {e}", original_exception=e)
        return self._connection

    def create_tables(self) -> None:
        """Creates this repository's tables if they do not exist."""
        conn = self._get_connection()
        cursor = conn.cursor()
        try:
            for query in self.table_definitions:
                cursor.execute(query)
            conn.commit()
            logger.info(f"{type(self).__name__}: tables checked/created.")
        except Error as e:
            conn.rollback()
            raise DatabaseError(f"Error creating tables for {type(self).__name__}: {e}", original_exception=e)
        finally:
            cursor.close()

    def _execute_write(self, query: str, params: tuple, error_message: str) -> int:
        """Runs a single write statement in its own transaction and returns the affected row count."""
        conn = self._get_connection()
        cursor = conn.cursor()
        try:
            cursor.execute(query, params)
            affected = cursor.rowcount
            conn.commit()
            return affected
        except Error as e:
            conn.rollback()
            raise DatabaseError(f"{error_message}: {e}", original_exception=e)
        finally:
            cursor.close()

    def _fetch_all(self, query: str, params: tuple, error_message: str) -> list[dict]:
        conn = self._get_connection()
        cursor = conn.cursor(dictionary=True)
        try:
            cursor.execute(query, params)
            return cursor.fetchall()
        except Error as e:
            raise DatabaseError(f"{error_message}: {e}", original_exception=e)
        finally:
            cursor.close()

    def close(self) -> None:
        if self._connection and self._connection.is_connected():
            self._connection.close()

    def __del__(self) -> None:
        """Closes the database connection when the object is destroyed."""
        self.close()
