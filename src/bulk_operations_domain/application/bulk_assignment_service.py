# src/bulk_operations_domain/application/bulk_assignment_service.py
"""Application service for assigning one product to many people at once."""

import logging
from datetime import date
from typing import Optional

from src.assignment_domain.application.assignment_register import AssignmentRegister, compute_renewal_date
from src.assignment_domain.application.employee_directory_service import EmployeeDirectoryService
from src.assignment_domain.domain.entities.assignment import Assignment
from src.bulk_operations_domain.domain.entities.bulk_assignment_plan import BulkAssignmentPlan
from src.bulk_operations_domain.domain.services.demand_aggregator import DemandEntry, aggregate_demand
from src.common.dtos.ledger_dtos import (
    BulkAssignmentResultDTO,
    BulkValidationReportDTO,
    FailureReason,
    RowFailureDTO,
)
from src.common.exceptions.custom_exceptions import (
    ApplicationError,
    BulkValidationError,
    UnknownCatalogReferenceError,
    ValidationIncompleteError,
)
from src.common.utils.date_utils import parse_date, today
from src.common.utils.locking import KeyedLockManager, person_key, stock_key
from src.inventory_domain.domain.repositories.inventory_repository import IInventoryRepository
from src.inventory_domain.domain.services.catalog_lookup import find_product
from src.inventory_domain.domain.services.stock_ledger import StockLedger

logger = logging.getLogger(__name__)


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


class BulkAssignmentService:
    """
    Selection, detail and commit phases of a bulk assignment.

    A commit either debits every variant and records every person, or changes nothing
    and raises BulkValidationError with the full list of problems.
    """

    def __init__(
        self,
        inventory_repo: IInventoryRepository,
        ledger: StockLedger,
        register: AssignmentRegister,
        directory: Optional[EmployeeDirectoryService] = None,
        lock_manager: Optional[KeyedLockManager] = None,
    ) -> None:
        self.inventory_repo = inventory_repo
        self.ledger = ledger
        self.register = register
        self.directory = directory
        self.lock_manager = lock_manager or ledger.lock_manager

    def start(
        self, person_names: list[str], product_name: str, assignment_date: date | str | None = None
    ) -> BulkAssignmentPlan:
        """Selection phase: who gets which product."""
        if not person_names or not any(name and name.strip() for name in person_names):
            raise ValidationIncompleteError("person_names", detail="select at least one person")
        product = find_product(self.inventory_repo, product_name)
        if product is None:
            raise UnknownCatalogReferenceError(product_name)

        plan = BulkAssignmentPlan.for_people(
            product_name=product.name,
            person_names=person_names,
            available_variants=[variant.name for variant in product.variants],
            assignment_date=assignment_date or today(),
            product_id=product.id,
        )
        logger.debug(f"Started bulk assignment of '{product.name}' for {len(plan.lines)} person(s)")
        return plan

    def validate(self, plan: BulkAssignmentPlan) -> BulkValidationReportDTO:
        """Checks the whole plan against current stock without changing anything."""
        report = BulkValidationReportDTO()
        all_rows = list(range(len(plan.lines)))

        product = find_product(self.inventory_repo, plan.product_name)
        if product is None:
            report.add(
                RowFailureDTO(
                    reason=FailureReason.UNKNOWN_CATALOG_REFERENCE,
                    row_indexes=all_rows,
                    product_name=plan.product_name,
                    message=f"Unknown product '{plan.product_name}'",
                )
            )
            return report

        if plan.assignment_date is None:
            report.add(
                RowFailureDTO(
                    reason=FailureReason.VALIDATION_INCOMPLETE,
                    row_indexes=all_rows,
                    product_name=product.name,
                    missing_field="assignment_date",
                    message="Assignment date is required",
                )
            )
        if not plan.lines:
            report.add(
                RowFailureDTO(
                    reason=FailureReason.VALIDATION_INCOMPLETE,
                    product_name=product.name,
                    missing_field="person_names",
                    message="No people selected",
                )
            )

        demand: list[DemandEntry] = []
        for index, line in enumerate(plan.lines):
            variant = None
            if not line.variant_name:
                report.add(
                    RowFailureDTO(
                        reason=FailureReason.VALIDATION_INCOMPLETE,
                        row_indexes=[index],
                        product_name=product.name,
                        person_name=line.person_name,
                        missing_field="variant_name",
                        message=f"Select a variant for {line.person_name}",
                    )
                )
            else:
                variant = product.find_variant(line.variant_name)
                if variant is None:
                    report.add(
                        RowFailureDTO(
                            reason=FailureReason.UNKNOWN_CATALOG_REFERENCE,
                            row_indexes=[index],
                            product_name=product.name,
                            variant_name=line.variant_name,
                            person_name=line.person_name,
                            message=f"Unknown variant '{line.variant_name}' for '{product.name}'",
                        )
                    )

            quantity_ok = _is_positive_int(line.quantity)
            if not quantity_ok:
                report.add(
                    RowFailureDTO(
                        reason=FailureReason.VALIDATION_INCOMPLETE,
                        row_indexes=[index],
                        product_name=product.name,
                        variant_name=line.variant_name,
                        person_name=line.person_name,
                        missing_field="quantity",
                        message=f"Quantity for {line.person_name} must be a positive integer",
                    )
                )
            renewal = line.renewal_months
            if isinstance(renewal, bool) or not isinstance(renewal, int) or renewal < 0:
                report.add(
                    RowFailureDTO(
                        reason=FailureReason.VALIDATION_INCOMPLETE,
                        row_indexes=[index],
                        product_name=product.name,
                        person_name=line.person_name,
                        missing_field="renewal_months",
                        message=f"Renewal period for {line.person_name} cannot be negative",
                    )
                )
            elif plan.assignment_date is not None:
                try:
                    compute_renewal_date(parse_date(plan.assignment_date), renewal)
                except ValidationIncompleteError as e:
                    report.add(
                        RowFailureDTO(
                            reason=FailureReason.VALIDATION_INCOMPLETE,
                            row_indexes=[index],
                            product_name=product.name,
                            person_name=line.person_name,
                            missing_field="renewal_months",
                            message=str(e),
                        )
                    )

            if variant is not None and quantity_ok:
                demand.append(DemandEntry(index, product.name, variant.name, line.quantity, line.person_name))

        for demand_line in aggregate_demand(demand):
            variant = product.find_variant(demand_line.variant_name)
            if demand_line.quantity > variant.on_hand:
                report.add(
                    RowFailureDTO(
                        reason=FailureReason.INSUFFICIENT_STOCK,
                        row_indexes=demand_line.row_indexes,
                        product_name=product.name,
                        variant_name=variant.name,
                        requested=demand_line.quantity,
                        available=variant.on_hand,
                        message=(
                            f"Not enough {product.name} / {variant.name}: "
                            f"requested {demand_line.quantity}, available {variant.on_hand}"
                        ),
                    )
                )
        return report

    def _lock_keys(self, plan: BulkAssignmentPlan) -> list:
        keys = [person_key(line.person_name) for line in plan.lines]
        keys.extend(stock_key(plan.product_name, line.variant_name) for line in plan.lines if line.variant_name)
        return keys

    def commit(self, plan: BulkAssignmentPlan) -> BulkAssignmentResultDTO:
        with self.lock_manager.hold(self._lock_keys(plan)):
            report = self.validate(plan)
            if not report.is_valid:
                logger.warning(
                    f"Bulk assignment of '{plan.product_name}' rejected with {len(report.failures)} problem(s)"
                )
                raise BulkValidationError(report)

            product = find_product(self.inventory_repo, plan.product_name)
            records: list[Assignment] = []
            for line in plan.lines:
                variant = product.find_variant(line.variant_name)
                employee = self.directory.find_by_name(line.person_name) if self.directory else None
                records.append(
                    self.register.build_assignment(
                        person_name=employee.name if employee else line.person_name,
                        product_name=product.name,
                        variant_name=variant.name,
                        quantity=line.quantity,
                        assignment_date=plan.assignment_date,
                        renewal_months=line.renewal_months,
                        employee_id=employee.id if employee else None,
                        product_id=product.id,
                        variant_id=variant.id,
                    )
                )

            demand = aggregate_demand(
                DemandEntry(index, record.product_name, record.variant_name, record.quantity)
                for index, record in enumerate(records)
            )
            remaining: dict[str, int] = {}
            debited: list[tuple[str, int]] = []
            try:
                for demand_line in demand:
                    variant = self.ledger.debit_on_hand(product.name, demand_line.variant_name, demand_line.quantity)
                    debited.append((variant.name, demand_line.quantity))
                    remaining[variant.name] = variant.on_hand
                self.register.record_many(records)
            except ApplicationError:
                for variant_name, quantity in reversed(debited):
                    self.ledger.credit_on_hand(product.name, variant_name, quantity)
                logger.error(f"Bulk assignment of '{product.name}' failed while applying; stock restored")
                raise

        logger.info(
            f"Bulk assignment committed: {sum(r.quantity for r in records)} unit(s) of '{product.name}' "
            f"to {len(records)} person(s)"
        )
        return BulkAssignmentResultDTO(
            product_name=product.name,
            assignment_date=plan.assignment_date,
            assignment_ids=[record.id for record in records],
            remaining_on_hand=remaining,
        )
