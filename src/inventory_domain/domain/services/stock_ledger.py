# src/inventory_domain/domain/services/stock_ledger.py
"""
Stock ledger: the single gate for every change to a variant's on-hand and in-transit counters.

Every operation validates before it mutates. Nothing is clamped: a debit larger than
what is available is rejected with the requested/available figures intact.
"""

import logging
from typing import Optional

from src.common.config.settings import settings
from src.common.exceptions.custom_exceptions import (
    CatalogConflictError,
    InsufficientStockError,
    InsufficientTransitStockError,
    UnknownCatalogReferenceError,
    ValidationIncompleteError,
)
from src.common.utils.date_utils import today
from src.common.utils.locking import KeyedLockManager, stock_key
from src.common.utils.name_utils import clean_name
from src.inventory_domain.domain.entities.product import Product
from src.inventory_domain.domain.entities.variant import Variant
from src.inventory_domain.domain.repositories.inventory_repository import IInventoryRepository
from src.inventory_domain.domain.services.catalog_lookup import find_product, resolve_variant

logger = logging.getLogger(__name__)


def require_positive_quantity(quantity: int, row_index: Optional[int] = None) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationIncompleteError("quantity", row_index, f"expected a positive integer, got {quantity!r}")


class StockLedger:
    """Atomic debit/credit operations on a single (product, variant)."""

    def __init__(self, inventory_repo: IInventoryRepository, lock_manager: Optional[KeyedLockManager] = None) -> None:
        self.inventory_repo = inventory_repo
        self.lock_manager = lock_manager or KeyedLockManager()

    def available_on_hand(self, product_name: str, variant_name: str) -> int:
        _, variant = resolve_variant(self.inventory_repo, product_name, variant_name)
        return variant.on_hand

    def available_in_transit(self, product_name: str, variant_name: str) -> int:
        _, variant = resolve_variant(self.inventory_repo, product_name, variant_name)
        return variant.in_transit

    def debit_on_hand(self, product_name: str, variant_name: str, quantity: int) -> Variant:
        """Removes units from on-hand. Used for assignments, exits and (via move_to_transit) transit-out."""
        require_positive_quantity(quantity)
        with self.lock_manager.hold([stock_key(product_name, variant_name)]):
            product, variant = resolve_variant(self.inventory_repo, product_name, variant_name)
            if variant.on_hand < quantity:
                raise InsufficientStockError(product.name, variant.name, quantity, variant.on_hand)
            variant.on_hand -= quantity
            self.inventory_repo.save_product(product)
            logger.debug(f"Debited {quantity} from {product.name} / {variant.name}, on hand {variant.on_hand}")
            return variant

    def credit_on_hand(self, product_name: str, variant_name: str, quantity: int) -> Variant:
        require_positive_quantity(quantity)
        with self.lock_manager.hold([stock_key(product_name, variant_name)]):
            product, variant = resolve_variant(self.inventory_repo, product_name, variant_name)
            variant.on_hand += quantity
            self.inventory_repo.save_product(product)
            logger.debug(f"Credited {quantity} to {product.name} / {variant.name}, on hand {variant.on_hand}")
            return variant

    def move_to_transit(self, product_name: str, variant_name: str, quantity: int) -> Variant:
        require_positive_quantity(quantity)
        with self.lock_manager.hold([stock_key(product_name, variant_name)]):
            product, variant = resolve_variant(self.inventory_repo, product_name, variant_name)
            if variant.on_hand < quantity:
                raise InsufficientStockError(product.name, variant.name, quantity, variant.on_hand)
            variant.on_hand -= quantity
            variant.in_transit += quantity
            self.inventory_repo.save_product(product)
            return variant

    def return_from_transit(self, product_name: str, variant_name: str, quantity: int) -> Variant:
        require_positive_quantity(quantity)
        with self.lock_manager.hold([stock_key(product_name, variant_name)]):
            product, variant = resolve_variant(self.inventory_repo, product_name, variant_name)
            if variant.in_transit < quantity:
                raise InsufficientTransitStockError(product.name, variant.name, quantity, variant.in_transit)
            variant.in_transit -= quantity
            variant.on_hand += quantity
            self.inventory_repo.save_product(product)
            return variant

    def create_variant(
        self,
        product_name: str,
        variant_name: str,
        initial_on_hand: int = 0,
        min_stock: Optional[int] = None,
    ) -> Variant:
        """Auto-provisions a variant on an existing product (entry of an unseen size)."""
        name = clean_name(variant_name)
        if not name:
            raise ValidationIncompleteError("variant_name")
        with self.lock_manager.hold([stock_key(product_name, name)]):
            product = find_product(self.inventory_repo, product_name)
            if product is None:
                raise UnknownCatalogReferenceError(product_name)
            if product.find_variant(name) is not None:
                raise CatalogConflictError(f"Variant '{name}' already exists on '{product.name}'")
            variant = Variant(
                name=name,
                on_hand=initial_on_hand,
                min_stock=settings.DEFAULT_MIN_STOCK if min_stock is None else min_stock,
            )
            product.variants.append(variant)
            self.inventory_repo.save_product(product)
            logger.info(f"Provisioned variant '{name}' on product '{product.name}' with {initial_on_hand} unit(s)")
            return variant

    def create_product(
        self,
        name: str,
        default_variant_name: str,
        quantity: int = 0,
        category: Optional[str] = None,
    ) -> Product:
        """Auto-provisions a product referenced by a stock entry that is not in the catalog yet."""
        product_name = clean_name(name)
        variant_name = clean_name(default_variant_name)
        if not product_name:
            raise ValidationIncompleteError("product_name")
        if not variant_name:
            raise ValidationIncompleteError("variant_name")
        with self.lock_manager.hold([stock_key(product_name, variant_name)]):
            if find_product(self.inventory_repo, product_name) is not None:
                raise CatalogConflictError(f"Product '{product_name}' already exists")
            category_name = category or settings.FALLBACK_CATEGORY
            if category_name not in self.inventory_repo.get_categories():
                self.inventory_repo.add_category(category_name)
            product = Product(
                name=product_name,
                category=category_name,
                variants=[Variant(name=variant_name, on_hand=quantity, min_stock=settings.DEFAULT_MIN_STOCK)],
                min_stock_global=settings.DEFAULT_MIN_STOCK,
                last_purchase_date=today(),
                price_per_unit=0.0,
            )
            self.inventory_repo.save_product(product)
            logger.info(f"Provisioned product '{product_name}' ({variant_name}) with {quantity} unit(s)")
            return product
