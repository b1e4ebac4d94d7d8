# src/bulk_operations_domain/application/bulk_stock_service.py
"""Application service for multi-row stock entry, exit and transit forms."""

import logging
from dataclasses import asdict
from datetime import date
from typing import Any, Callable, Optional

from src.assignment_domain.application.assignment_register import AssignmentRegister
from src.bulk_operations_domain.domain.repositories.draft_repository import IDraftRepository
from src.bulk_operations_domain.domain.services.demand_aggregator import DemandEntry, DemandLine, aggregate_demand
from src.common.dtos.ledger_dtos import (
    AppliedStockLineDTO,
    BulkStockResultDTO,
    BulkValidationReportDTO,
    FailureReason,
    RowFailureDTO,
    StockMode,
    StockMovementRowDTO,
)
from src.common.exceptions.custom_exceptions import ApplicationError, BulkValidationError
from src.common.utils.date_utils import now, parse_date, today
from src.common.utils.locking import KeyedLockManager, stock_key
from src.common.utils.name_utils import clean_name
from src.inventory_domain.domain.entities.product import Product
from src.inventory_domain.domain.repositories.inventory_repository import IInventoryRepository
from src.inventory_domain.domain.services.catalog_lookup import find_product, find_product_by_name
from src.inventory_domain.domain.services.stock_ledger import StockLedger

logger = logging.getLogger(__name__)

# Variant given to a product created by an entry row that named no variant
DEFAULT_VARIANT_NAME = "Único"


def _coerce_row(row: StockMovementRowDTO | dict[str, Any]) -> StockMovementRowDTO:
    if isinstance(row, StockMovementRowDTO):
        return row
    return StockMovementRowDTO(
        product_name=row.get("product_name") or "",
        variant_name=row.get("variant_name"),
        quantity=row.get("quantity", 0),
    )


def _incomplete(index: int, field_name: str, row: StockMovementRowDTO, message: str) -> RowFailureDTO:
    return RowFailureDTO(
        reason=FailureReason.VALIDATION_INCOMPLETE,
        row_indexes=[index],
        product_name=row.product_name or None,
        variant_name=row.variant_name or None,
        missing_field=field_name,
        message=message,
    )


class BulkStockService:
    """Validates a whole form, then applies every merged line or nothing."""

    def __init__(
        self,
        inventory_repo: IInventoryRepository,
        ledger: StockLedger,
        register: AssignmentRegister,
        draft_repo: IDraftRepository,
        lock_manager: Optional[KeyedLockManager] = None,
    ) -> None:
        self.inventory_repo = inventory_repo
        self.ledger = ledger
        self.register = register
        self.draft_repo = draft_repo
        self.lock_manager = lock_manager or ledger.lock_manager

    # --- validation ----------------------------------------------------------

    def _normalize_rows(
        self, mode: StockMode, rows: list, products: list[Product], report: BulkValidationReportDTO
    ) -> list[DemandEntry]:
        """Fills blank variants where the catalog allows it and records per-row problems."""
        entries: list[DemandEntry] = []
        for index, raw_row in enumerate(rows):
            row = _coerce_row(raw_row)
            product_name = clean_name(row.product_name)
            variant_name = clean_name(row.variant_name)
            row_ok = True

            if not product_name:
                report.add(_incomplete(index, "product_name", row, f"Row {index}: select a product"))
                row_ok = False

            quantity = row.quantity
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
                report.add(_incomplete(index, "quantity", row, f"Row {index}: quantity must be a positive integer"))
                row_ok = False

            if not product_name:
                continue

            product = find_product_by_name(products, product_name)
            if product is not None:
                product_name = product.name
                if not variant_name:
                    if product.has_single_variant():
                        variant_name = product.variants[0].name
                    else:
                        report.add(
                            _incomplete(index, "variant_name", row, f"Row {index}: select a variant of '{product.name}'")
                        )
                        row_ok = False
                elif product.find_variant(variant_name) is not None:
                    variant_name = product.find_variant(variant_name).name
                elif mode != StockMode.ENTRY:
                    report.add(
                        RowFailureDTO(
                            reason=FailureReason.UNKNOWN_CATALOG_REFERENCE,
                            row_indexes=[index],
                            product_name=product.name,
                            variant_name=variant_name,
                            message=f"Row {index}: unknown variant '{variant_name}' for '{product.name}'",
                        )
                    )
                    row_ok = False
            elif mode == StockMode.ENTRY:
                variant_name = variant_name or DEFAULT_VARIANT_NAME
            else:
                report.add(
                    RowFailureDTO(
                        reason=FailureReason.UNKNOWN_CATALOG_REFERENCE,
                        row_indexes=[index],
                        product_name=product_name,
                        variant_name=variant_name or None,
                        message=f"Row {index}: unknown product '{product_name}'",
                    )
                )
                row_ok = False

            if row_ok:
                entries.append(DemandEntry(index, product_name, variant_name, quantity))
        return entries

    def _check_capacity(
        self, mode: StockMode, lines: list[DemandLine], products: list[Product], report: BulkValidationReportDTO
    ) -> None:
        if mode == StockMode.ENTRY:
            return
        for line in lines:
            variant = find_product_by_name(products, line.product_name).find_variant(line.variant_name)
            if mode == StockMode.TRANSIT_RETURN:
                available, reason, label = variant.in_transit, FailureReason.INSUFFICIENT_TRANSIT_STOCK, "in transit"
            else:
                available, reason, label = variant.on_hand, FailureReason.INSUFFICIENT_STOCK, "available"
            if line.quantity > available:
                report.add(
                    RowFailureDTO(
                        reason=reason,
                        row_indexes=line.row_indexes,
                        product_name=line.product_name,
                        variant_name=line.variant_name,
                        requested=line.quantity,
                        available=available,
                        message=(
                            f"Not enough {line.product_name} / {line.variant_name}: "
                            f"requested {line.quantity}, {label} {available}"
                        ),
                    )
                )

    def _validate(self, mode: StockMode, rows: list) -> tuple[BulkValidationReportDTO, list[DemandLine]]:
        report = BulkValidationReportDTO()
        products = self.inventory_repo.get_all_products()
        lines = aggregate_demand(self._normalize_rows(mode, rows, products, report))
        self._check_capacity(mode, lines, products, report)
        return report, lines

    def validate(self, mode: StockMode | str, rows: list) -> BulkValidationReportDTO:
        """Reports every problem of the submission at once. Never changes stock."""
        report, _ = self._validate(StockMode(mode), rows)
        return report

    # --- apply ---------------------------------------------------------------

    def _apply_line(
        self, mode: StockMode, line: DemandLine, movement_date: date, undo: list[Callable[[], Any]]
    ) -> AppliedStockLineDTO:
        applied = AppliedStockLineDTO(
            product_name=line.product_name,
            variant_name=line.variant_name,
            quantity=line.quantity,
            row_indexes=line.row_indexes,
            on_hand_after=0,
            in_transit_after=0,
        )
        product_name, variant_name, quantity = line.product_name, line.variant_name, line.quantity

        if mode == StockMode.ENTRY:
            product = find_product(self.inventory_repo, product_name)
            if product is None:
                product = self.ledger.create_product(product_name, variant_name, quantity)
                variant = product.variants[0]
                applied.created_product = True
            elif product.find_variant(variant_name) is None:
                variant = self.ledger.create_variant(product.name, variant_name, initial_on_hand=quantity)
                applied.created_variant = True
            else:
                variant = self.ledger.credit_on_hand(product_name, variant_name, quantity)
            undo.append(lambda: self.ledger.debit_on_hand(product_name, variant_name, quantity))
        elif mode == StockMode.EXIT:
            variant = self.ledger.debit_on_hand(product_name, variant_name, quantity)
            undo.append(lambda: self.ledger.credit_on_hand(product_name, variant_name, quantity))
            product = find_product(self.inventory_repo, product_name)
            record = self.register.record_exit(
                product_name, variant_name, quantity, movement_date, product_id=product.id, variant_id=variant.id
            )
            undo.append(lambda: self.register.assignment_repo.delete(record.id))
            applied.exit_record_id = record.id
        elif mode == StockMode.TRANSIT_OUT:
            variant = self.ledger.move_to_transit(product_name, variant_name, quantity)
            undo.append(lambda: self.ledger.return_from_transit(product_name, variant_name, quantity))
        else:
            variant = self.ledger.return_from_transit(product_name, variant_name, quantity)
            undo.append(lambda: self.ledger.move_to_transit(product_name, variant_name, quantity))

        applied.on_hand_after = variant.on_hand
        applied.in_transit_after = variant.in_transit
        return applied

    def apply(
        self,
        mode: StockMode | str,
        rows: list,
        movement_date: date | str | None = None,
        draft_name: Optional[str] = None,
    ) -> BulkStockResultDTO:
        """
        Applies a bulk stock submission atomically.

        Raises BulkValidationError (and changes nothing) when any row fails. On success
        the named draft, if any, is cleared.
        """
        mode = StockMode(mode)
        movement = parse_date(movement_date) or today()
        # Keys from a first pass; the authoritative validation happens under the locks
        keys = self._line_keys(self._validate(mode, rows)[1])
        while True:
            with self.lock_manager.hold(keys):
                report, lines = self._validate(mode, rows)
                needed = self._line_keys(lines)
                if needed <= keys:
                    result = self._apply_validated(mode, report, lines, movement)
                    break
            # The catalog changed between the two passes, so retry holding the new keys too
            keys = keys | needed

        if draft_name:
            self.clear_draft(draft_name)
        logger.info(f"Bulk {mode.value} applied: {result.total_quantity} unit(s) over {len(result.lines)} line(s)")
        return result

    @staticmethod
    def _line_keys(lines: list[DemandLine]) -> set:
        return {stock_key(line.product_name, line.variant_name) for line in lines}

    def _apply_validated(
        self, mode: StockMode, report: BulkValidationReportDTO, lines: list[DemandLine], movement: date
    ) -> BulkStockResultDTO:
        if not report.is_valid:
            logger.warning(f"Bulk {mode.value} rejected with {len(report.failures)} problem(s); nothing applied")
            raise BulkValidationError(report)

        result = BulkStockResultDTO(mode=mode, movement_date=movement)
        undo: list[Callable[[], Any]] = []
        try:
            for line in lines:
                result.lines.append(self._apply_line(mode, line, movement, undo))
        except ApplicationError:
            for step in reversed(undo):
                step()
            logger.error(f"Bulk {mode.value} failed while applying; {len(undo)} step(s) reverted")
            raise
        return result

    # --- drafts --------------------------------------------------------------

    def save_draft(self, name: str, mode: StockMode | str, rows: list) -> None:
        payload = {
            "mode": StockMode(mode).value,
            "saved_at": now().isoformat(),
            "rows": [asdict(row) if isinstance(row, StockMovementRowDTO) else dict(row) for row in rows],
        }
        self.draft_repo.save(name, payload)

    def load_draft(self, name: str) -> Optional[tuple[StockMode, list[StockMovementRowDTO]]]:
        payload = self.draft_repo.load(name)
        if payload is None:
            return None
        mode = StockMode(payload.get("mode", StockMode.ENTRY.value))
        return mode, [_coerce_row(row) for row in payload.get("rows", [])]

    def clear_draft(self, name: str) -> bool:
        return self.draft_repo.delete(name)
