# src/common/application_context.py
"""Wires repositories, the shared lock manager and the services together."""

import json
import logging
from dataclasses import dataclass
from typing import Optional

from src.assignment_domain.application.assignment_register import AssignmentRegister
from src.assignment_domain.application.employee_directory_service import EmployeeDirectoryService
from src.assignment_domain.domain.entities.assignment import Assignment
from src.assignment_domain.domain.entities.employee import Employee
from src.assignment_domain.domain.repositories.assignment_repository import IAssignmentRepository
from src.assignment_domain.domain.repositories.employee_repository import IEmployeeRepository
from src.assignment_domain.infrastructure.persistence.in_memory_assignment_repository import (
    InMemoryAssignmentRepository,
    InMemoryEmployeeRepository,
)
from src.bulk_operations_domain.application.bulk_assignment_service import BulkAssignmentService
from src.bulk_operations_domain.application.bulk_stock_service import BulkStockService
from src.bulk_operations_domain.domain.repositories.draft_repository import IDraftRepository
from src.bulk_operations_domain.infrastructure.persistence.in_memory_draft_repository import InMemoryDraftRepository
from src.bulk_operations_domain.infrastructure.persistence.json_draft_repository import JsonDraftRepository
from src.common.config.settings import settings
from src.common.exceptions.custom_exceptions import ApplicationError
from src.common.utils.date_utils import parse_date
from src.common.utils.locking import KeyedLockManager
from src.inventory_domain.application.catalog_service import CatalogService
from src.inventory_domain.application.inventory_report_service import InventoryReportService
from src.inventory_domain.domain.entities.product import Product
from src.inventory_domain.domain.entities.variant import Variant
from src.inventory_domain.domain.repositories.inventory_repository import IInventoryRepository
from src.inventory_domain.domain.services.stock_ledger import StockLedger
from src.inventory_domain.infrastructure.persistence.in_memory_inventory_repository import InMemoryInventoryRepository

logger = logging.getLogger(__name__)


@dataclass
class ApplicationContext:
    inventory_repo: IInventoryRepository
    assignment_repo: IAssignmentRepository
    employee_repo: IEmployeeRepository
    draft_repo: IDraftRepository
    lock_manager: KeyedLockManager
    catalog: CatalogService
    ledger: StockLedger
    register: AssignmentRegister
    directory: EmployeeDirectoryService
    bulk_assignments: BulkAssignmentService
    bulk_stock: BulkStockService
    reports: InventoryReportService

    def close(self) -> None:
        for repo in (self.inventory_repo, self.assignment_repo, self.employee_repo):
            repo.close()
        logger.debug("Application context closed")


def _build_repositories(backend: str) -> tuple[IInventoryRepository, IAssignmentRepository, IEmployeeRepository]:
    if backend == "memory":
        return InMemoryInventoryRepository(), InMemoryAssignmentRepository(), InMemoryEmployeeRepository()
    if backend == "mysql":
        # Imported here so the in-memory setup does not need a MySQL driver configured
        from src.assignment_domain.infrastructure.persistence.mysql_assignment_repository import (
            MySQLAssignmentRepository,
        )
        from src.assignment_domain.infrastructure.persistence.mysql_employee_repository import MySQLEmployeeRepository
        from src.inventory_domain.infrastructure.persistence.mysql_inventory_repository import MySQLInventoryRepository

        repos = (MySQLInventoryRepository(), MySQLAssignmentRepository(), MySQLEmployeeRepository())
        for repo in repos:
            repo.create_tables()
        return repos
    raise ApplicationError(f"Unknown storage backend '{backend}' (expected 'memory' or 'mysql')")


def _build_draft_repository(drafts_backend: str, drafts_dir: Optional[str]) -> IDraftRepository:
    if drafts_backend == "json":
        return JsonDraftRepository(drafts_dir)
    if drafts_backend == "memory":
        return InMemoryDraftRepository()
    raise ApplicationError(f"Unknown drafts backend '{drafts_backend}' (expected 'json' or 'memory')")


def load_seed_data(context: ApplicationContext, seed_path: str) -> None:
    """Fills an empty store with the reference catalog, employees and historical assignments."""
    if context.inventory_repo.get_all_products():
        logger.info("Inventory already populated; skipping seed data")
        return
    try:
        with open(seed_path, encoding="utf-8") as handle:
            seed = json.load(handle)
    except (OSError, json.JSONDecodeError) as e:
        raise ApplicationError(f"Could not load seed data from {seed_path}", original_exception=e)

    for category in seed.get("categories", []):
        context.inventory_repo.add_category(category)
    for item in seed.get("products", []):
        context.inventory_repo.save_product(
            Product(
                name=item["name"],
                category=item.get("category") or settings.FALLBACK_CATEGORY,
                variants=[
                    Variant(
                        name=variant["name"],
                        on_hand=variant.get("on_hand", 0),
                        min_stock=variant.get("min_stock", 0),
                        barcodes=set(variant.get("barcodes", [])),
                    )
                    for variant in item["variants"]
                ],
                min_stock_global=item.get("min_stock_global", 0),
                last_purchase_date=parse_date(item.get("last_purchase_date")),
                expiration_date=parse_date(item.get("expiration_date")),
                price_per_unit=float(item.get("price_per_unit", 0)),
            )
        )
    for item in seed.get("employees", []):
        context.employee_repo.save(Employee(**item))

    # Historical records: the seeded on-hand figures already account for them
    records = [
        Assignment(
            person_name=item["person_name"],
            product_name=item["product_name"],
            variant_name=item["variant_name"],
            assignment_date=parse_date(item["assignment_date"]),
            quantity=item.get("quantity", 1),
        )
        for item in seed.get("assignments", [])
    ]
    if records:
        context.register.record_many(records)
    logger.info(
        f"Seeded {len(seed.get('products', []))} product(s), {len(seed.get('employees', []))} employee(s) "
        f"and {len(records)} assignment(s)"
    )


def build_application_context(
    backend: Optional[str] = None,
    seed: bool = True,
    drafts_dir: Optional[str] = None,
    drafts_backend: Optional[str] = None,
) -> ApplicationContext:
    """Builds every service once, sharing a single lock manager between them."""
    inventory_repo, assignment_repo, employee_repo = _build_repositories(backend or settings.STORAGE_BACKEND)
    draft_repo = _build_draft_repository(drafts_backend or settings.DRAFTS_BACKEND, drafts_dir)
    lock_manager = KeyedLockManager()

    catalog = CatalogService(inventory_repo, lock_manager)
    ledger = StockLedger(inventory_repo, lock_manager)
    register = AssignmentRegister(assignment_repo, lock_manager)
    directory = EmployeeDirectoryService(employee_repo, register)
    context = ApplicationContext(
        inventory_repo=inventory_repo,
        assignment_repo=assignment_repo,
        employee_repo=employee_repo,
        draft_repo=draft_repo,
        lock_manager=lock_manager,
        catalog=catalog,
        ledger=ledger,
        register=register,
        directory=directory,
        bulk_assignments=BulkAssignmentService(inventory_repo, ledger, register, directory, lock_manager),
        bulk_stock=BulkStockService(inventory_repo, ledger, register, draft_repo, lock_manager),
        reports=InventoryReportService(inventory_repo, register),
    )
    if seed and settings.SEED_DATA_PATH:
        load_seed_data(context, settings.SEED_DATA_PATH)
    return context
