# tests/conftest.py
from datetime import date

import pytest

from src.assignment_domain.application.assignment_register import AssignmentRegister
from src.assignment_domain.application.employee_directory_service import EmployeeDirectoryService
from src.assignment_domain.infrastructure.persistence.in_memory_assignment_repository import (
    InMemoryAssignmentRepository,
    InMemoryEmployeeRepository,
)
from src.bulk_operations_domain.application.bulk_assignment_service import BulkAssignmentService
from src.bulk_operations_domain.application.bulk_stock_service import BulkStockService
from src.bulk_operations_domain.infrastructure.persistence.in_memory_draft_repository import InMemoryDraftRepository
from src.common.config.settings import settings
from src.common.utils.locking import KeyedLockManager
from src.inventory_domain.application.catalog_service import CatalogService
from src.inventory_domain.application.inventory_report_service import InventoryReportService
from src.inventory_domain.domain.entities.product import Product
from src.inventory_domain.domain.entities.variant import Variant
from src.inventory_domain.domain.services.stock_ledger import StockLedger
from src.inventory_domain.infrastructure.persistence.in_memory_inventory_repository import InMemoryInventoryRepository


@pytest.fixture(autouse=True)
def mock_ledger_settings(mocker, tmp_path) -> None:
    """Pins the settings the ledger reads so tests do not depend on a local .env."""
    mocker.patch.object(settings, "DEFAULT_MIN_STOCK", 10)
    mocker.patch.object(settings, "FALLBACK_CATEGORY", "Generales")
    mocker.patch.object(settings, "TIMEZONE", "America/Santiago")
    mocker.patch.object(settings, "EXPIRATION_WARNING_DAYS", 30)
    mocker.patch.object(settings, "EXPIRATION_CRITICAL_DAYS", 5)
    mocker.patch.object(settings, "RENEWAL_WARNING_DAYS", 30)
    mocker.patch.object(settings, "DRAFTS_DIR", str(tmp_path / "drafts"))


@pytest.fixture
def inventory_repo() -> InMemoryInventoryRepository:
    return InMemoryInventoryRepository(categories=["Generales", "Protección Cabeza"])


@pytest.fixture
def assignment_repo() -> InMemoryAssignmentRepository:
    return InMemoryAssignmentRepository()


@pytest.fixture
def employee_repo() -> InMemoryEmployeeRepository:
    return InMemoryEmployeeRepository()


@pytest.fixture
def lock_manager() -> KeyedLockManager:
    return KeyedLockManager()


@pytest.fixture
def ledger(inventory_repo, lock_manager) -> StockLedger:
    return StockLedger(inventory_repo, lock_manager)


@pytest.fixture
def register(assignment_repo, lock_manager) -> AssignmentRegister:
    return AssignmentRegister(assignment_repo, lock_manager)


@pytest.fixture
def directory(employee_repo, register) -> EmployeeDirectoryService:
    return EmployeeDirectoryService(employee_repo, register)


@pytest.fixture
def catalog(inventory_repo, lock_manager) -> CatalogService:
    return CatalogService(inventory_repo, lock_manager)


@pytest.fixture
def draft_repo() -> InMemoryDraftRepository:
    return InMemoryDraftRepository()


@pytest.fixture
def bulk_assignment_service(inventory_repo, ledger, register, directory, lock_manager) -> BulkAssignmentService:
    return BulkAssignmentService(inventory_repo, ledger, register, directory, lock_manager)


@pytest.fixture
def bulk_stock_service(inventory_repo, ledger, register, draft_repo, lock_manager) -> BulkStockService:
    return BulkStockService(inventory_repo, ledger, register, draft_repo, lock_manager)


@pytest.fixture
def report_service(inventory_repo, register) -> InventoryReportService:
    return InventoryReportService(inventory_repo, register)


@pytest.fixture
def helmet(inventory_repo) -> Product:
    """Single-variant product: Helmet / Standard with 10 on hand."""
    product = Product(
        name="Helmet",
        category="Protección Cabeza",
        variants=[Variant(name="Standard", on_hand=10, min_stock=5, barcodes={"7800000000011"})],
        min_stock_global=5,
        last_purchase_date=date(2025, 5, 1),
        expiration_date=date(2028, 5, 1),
        price_per_unit=25000.0,
    )
    inventory_repo.save_product(product)
    return product


@pytest.fixture
def vest(inventory_repo) -> Product:
    """Multi-variant product: Reflective Vest in S/M/L."""
    product = Product(
        name="Reflective Vest",
        category="Generales",
        variants=[
            Variant(name="S", on_hand=5, min_stock=3),
            Variant(name="M", on_hand=8, min_stock=3),
            Variant(name="L", on_hand=2, min_stock=3, in_transit=4),
        ],
        min_stock_global=20,
        price_per_unit=12000.0,
    )
    inventory_repo.save_product(product)
    return product


@pytest.fixture
def stock_of(inventory_repo):
    """Returns a reader for (on_hand, in_transit) of a product/variant in the repository."""

    def _read(product_name: str, variant_name: str) -> tuple[int, int]:
        product = next(p for p in inventory_repo.get_all_products() if p.name == product_name)
        variant = product.find_variant(variant_name)
        return variant.on_hand, variant.in_transit

    return _read
