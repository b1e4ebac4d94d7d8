# src/assignment_domain/application/assignment_register.py
"""Application service for the assignment register (equipment handed out and stock written off)."""

import dataclasses
import logging
from datetime import date, timedelta
from typing import Optional

from src.assignment_domain.domain.entities.assignment import WASTE_ACTOR_NAME, Assignment, EntryKind
from src.assignment_domain.domain.repositories.assignment_repository import IAssignmentRepository
from src.common.exceptions.custom_exceptions import RecordNotFoundError, ValidationIncompleteError
from src.common.utils.date_utils import add_months, parse_date, today
from src.common.utils.locking import KeyedLockManager, person_key
from src.common.utils.name_utils import clean_name, normalize_name

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = frozenset(f.name for f in dataclasses.fields(Assignment))


def compute_renewal_date(assignment_date: date, renewal_months: int) -> Optional[date]:
    """Renewal due date, or None when the item is not renewed."""
    if renewal_months is None or renewal_months <= 0:
        return None
    try:
        return add_months(assignment_date, renewal_months)
    except (ValueError, OverflowError) as e:
        raise ValidationIncompleteError(
            "renewal_months", detail=f"{renewal_months} month(s) after {assignment_date} is not a valid date"
        ) from e


def _sort_value(value):
    if isinstance(value, str):
        return value.casefold()
    if isinstance(value, EntryKind):
        return value.value
    return value


class AssignmentRegister:
    """
    Append-only log of ledger-originated movements.

    The register never touches stock: callers debit the ledger first and record afterwards.
    Deleting a record is a log correction and does not put units back on hand.
    """

    def __init__(self, assignment_repo: IAssignmentRepository, lock_manager: Optional[KeyedLockManager] = None) -> None:
        self.assignment_repo = assignment_repo
        self.lock_manager = lock_manager or KeyedLockManager()

    def build_assignment(
        self,
        person_name: str,
        product_name: str,
        variant_name: str,
        quantity: int,
        assignment_date: date | str,
        renewal_months: int = 0,
        employee_id: Optional[str] = None,
        product_id: Optional[str] = None,
        variant_id: Optional[str] = None,
    ) -> Assignment:
        """Creates (but does not store) an assigned record with its renewal date worked out."""
        name = clean_name(person_name)
        if not name:
            raise ValidationIncompleteError("person_name")
        entry_date = parse_date(assignment_date)
        if entry_date is None:
            raise ValidationIncompleteError("assignment_date")
        if renewal_months is not None and renewal_months < 0:
            raise ValidationIncompleteError("renewal_months", detail="cannot be negative")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValidationIncompleteError("quantity", detail=f"expected a positive integer, got {quantity!r}")

        return Assignment(
            person_name=name,
            product_name=product_name,
            variant_name=variant_name,
            assignment_date=entry_date,
            quantity=quantity,
            renewal_date=compute_renewal_date(entry_date, renewal_months),
            kind=EntryKind.ASSIGNED,
            employee_id=employee_id,
            product_id=product_id,
            variant_id=variant_id,
        )

    def build_exit(
        self,
        product_name: str,
        variant_name: str,
        quantity: int,
        exit_date: date | str | None = None,
        product_id: Optional[str] = None,
        variant_id: Optional[str] = None,
    ) -> Assignment:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValidationIncompleteError("quantity", detail=f"expected a positive integer, got {quantity!r}")
        return Assignment(
            person_name=WASTE_ACTOR_NAME,
            product_name=product_name,
            variant_name=variant_name,
            assignment_date=parse_date(exit_date) or today(),
            quantity=quantity,
            kind=EntryKind.WASTE_EXIT,
            product_id=product_id,
            variant_id=variant_id,
        )

    def record_assignment(
        self,
        person_name: str,
        product_name: str,
        variant_name: str,
        quantity: int,
        assignment_date: date | str,
        renewal_months: int = 0,
        employee_id: Optional[str] = None,
        product_id: Optional[str] = None,
        variant_id: Optional[str] = None,
    ) -> Assignment:
        record = self.build_assignment(
            person_name,
            product_name,
            variant_name,
            quantity,
            assignment_date,
            renewal_months,
            employee_id=employee_id,
            product_id=product_id,
            variant_id=variant_id,
        )
        self.assignment_repo.add(record)
        logger.info(f"Recorded {quantity} x {product_name} ({variant_name}) for {record.person_name}")
        return record

    def record_exit(
        self,
        product_name: str,
        variant_name: str,
        quantity: int,
        exit_date: date | str | None = None,
        product_id: Optional[str] = None,
        variant_id: Optional[str] = None,
    ) -> Assignment:
        """Logs a waste/exit movement (breakage, loss) through the same audit trail."""
        record = self.build_exit(product_name, variant_name, quantity, exit_date, product_id, variant_id)
        self.assignment_repo.add(record)
        logger.info(f"Recorded exit of {quantity} x {product_name} ({variant_name})")
        return record

    def record_many(self, records: list[Assignment]) -> None:
        """Stores pre-built records in one call (used by bulk commits)."""
        self.assignment_repo.add_many(records)

    def delete_record(self, record_id: str) -> Assignment:
        record = self.assignment_repo.get(record_id)
        if record is None:
            raise RecordNotFoundError("Assignment", record_id)
        with self.lock_manager.hold([person_key(record.person_name)]):
            if not self.assignment_repo.delete(record_id):
                raise RecordNotFoundError("Assignment", record_id)
        logger.info(f"Deleted register entry {record_id} ({record.person_name}, {record.product_name}); stock unchanged")
        return record

    def rename_actor(self, old_name: str, new_name: str) -> int:
        """
        Rewrites person_name on every assigned record of old_name. Returns the number of records changed.

        Every stored spelling of old_name (case and spacing aside) is rewritten, so records typed
        as "ana perez" follow an employee renamed from "Ana Perez".
        """
        target = clean_name(new_name)
        if not target:
            raise ValidationIncompleteError("person_name")
        key = normalize_name(old_name)
        with self.lock_manager.hold([person_key(old_name), person_key(target)]):
            spellings = {
                record.person_name
                for record in self.assignment_repo.get_all()
                if record.kind == EntryKind.ASSIGNED and normalize_name(record.person_name) == key
            }
            spellings.discard(target)
            changed = sum(self.assignment_repo.rename_person(spelling, target) for spelling in sorted(spellings))
        logger.info(f"Renamed '{old_name}' to '{target}' on {changed} register entr(y/ies)")
        return changed

    # --- queries -----------------------------------------------------------

    def get_record(self, record_id: str) -> Assignment:
        record = self.assignment_repo.get(record_id)
        if record is None:
            raise RecordNotFoundError("Assignment", record_id)
        return record

    def list_records(
        self,
        person_name: Optional[str] = None,
        search: Optional[str] = None,
        sort_by: Optional[str] = None,
        descending: bool = False,
        kind: Optional[EntryKind] = None,
    ) -> list[Assignment]:
        """
        Filters and sorts register entries.

        person_name matches case-insensitively; search is a case-insensitive substring over person and
        equipment. Sorting is stable, so ties keep insertion order in both directions; empty
        values always go last.
        """
        records = self.assignment_repo.get_all()
        if kind is not None:
            records = [record for record in records if record.kind == EntryKind(kind)]
        if person_name:
            key = normalize_name(person_name)
            records = [record for record in records if normalize_name(record.person_name) == key]
        if search:
            needle = search.casefold()
            records = [
                record
                for record in records
                if needle in record.person_name.casefold() or needle in record.product_name.casefold()
            ]
        if sort_by is None:
            return records
        if sort_by not in SORTABLE_FIELDS:
            raise ValueError(f"Cannot sort assignments by '{sort_by}'")

        present = [record for record in records if getattr(record, sort_by) is not None]
        missing = [record for record in records if getattr(record, sort_by) is None]
        present.sort(key=lambda record: _sort_value(getattr(record, sort_by)), reverse=descending)
        return present + missing

    def records_for_person(self, person_name: str) -> list[Assignment]:
        return self.list_records(person_name=person_name, kind=EntryKind.ASSIGNED)

    def count_for_person(self, person_name: str) -> int:
        return len(self.records_for_person(person_name))

    def known_people(self) -> list[str]:
        """Distinct people that have received equipment, sorted."""
        names = {record.person_name for record in self.assignment_repo.get_all() if record.kind == EntryKind.ASSIGNED}
        return sorted(names, key=normalize_name)

    def upcoming_renewals(self, within_days: int, reference_date: date | str | None = None) -> list[Assignment]:
        """Assigned records whose renewal falls on or before reference_date + within_days (overdue included)."""
        reference = parse_date(reference_date) or today()
        horizon = reference + timedelta(days=within_days)
        due = [
            record
            for record in self.assignment_repo.get_all()
            if record.kind == EntryKind.ASSIGNED and record.renewal_date is not None and record.renewal_date <= horizon
        ]
        return sorted(due, key=lambda record: record.renewal_date)
