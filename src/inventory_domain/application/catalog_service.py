# src/inventory_domain/application/catalog_service.py
"""Application service for the product/variant/category catalog."""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date
from typing import Iterator, Optional

from src.common.config.settings import settings
from src.common.dtos.inventory_dtos import ProductSnapshotDTO, VariantSnapshotDTO
from src.common.exceptions.custom_exceptions import (
    CatalogConflictError,
    DuplicateBarcodeError,
    RecordNotFoundError,
    UnknownCatalogReferenceError,
    ValidationIncompleteError,
)
from src.common.utils.date_utils import parse_date
from src.common.utils.locking import KeyedLockManager, stock_key
from src.common.utils.name_utils import clean_name, normalize_name
from src.inventory_domain.domain.entities.product import Product
from src.inventory_domain.domain.entities.variant import Variant
from src.inventory_domain.domain.repositories.inventory_repository import IInventoryRepository
from src.inventory_domain.domain.services.catalog_lookup import (
    find_barcode_owner,
    find_product_by_name,
    resolve_variant,
)

logger = logging.getLogger(__name__)

_EDITABLE_PRODUCT_FIELDS = {
    "name",
    "category",
    "min_stock_global",
    "last_purchase_date",
    "expiration_date",
    "price_per_unit",
}


@dataclass
class NewVariantSpec:
    """Variant definition used when a product is created through the catalog."""

    name: str
    on_hand: int = 0
    min_stock: int = 0
    barcodes: set[str] = field(default_factory=set)


def snapshot_product(product: Product) -> ProductSnapshotDTO:
    return ProductSnapshotDTO(
        id=product.id,
        name=product.name,
        category=product.category,
        min_stock_global=product.min_stock_global,
        price_per_unit=product.price_per_unit,
        last_purchase_date=product.last_purchase_date,
        expiration_date=product.expiration_date,
        variants=tuple(
            VariantSnapshotDTO(
                id=variant.id,
                name=variant.name,
                on_hand=variant.on_hand,
                in_transit=variant.in_transit,
                min_stock=variant.min_stock,
                barcodes=tuple(sorted(variant.barcodes)),
            )
            for variant in product.variants
        ),
    )


class CatalogService:
    """
    Lookups, product CRUD and category-tag maintenance. Never touches stock quantities after creation.

    Edits save the whole product back, so they hold the stock lock of every variant from the read to
    the save; a ledger movement on the same product waits for the edit instead of being overwritten.
    """

    def __init__(self, inventory_repo: IInventoryRepository, lock_manager: Optional[KeyedLockManager] = None) -> None:
        self.inventory_repo = inventory_repo
        self.lock_manager = lock_manager or KeyedLockManager()

    @staticmethod
    def _stock_keys(product: Product, new_name: Optional[str] = None, new_variant: Optional[str] = None) -> set:
        product_names = {product.name}
        if new_name:
            product_names.add(new_name)
        variant_names = [variant.name for variant in product.variants]
        if new_variant:
            variant_names.append(new_variant)
        return {stock_key(p, v) for p in product_names for v in variant_names}

    @contextmanager
    def _editing(
        self, product_id: str, new_name: Optional[str] = None, new_variant: Optional[str] = None
    ) -> Iterator[Product]:
        """Yields a fresh copy of the product while its stock keys are held."""
        product = self.get_product_by_id(product_id)
        while True:
            keys = self._stock_keys(product, new_name, new_variant)
            with self.lock_manager.hold(keys):
                current = self.get_product_by_id(product_id)
                # A variant created since the first read needs its key too
                if self._stock_keys(current, new_name, new_variant) <= keys:
                    yield current
                    return
            product = current

    # --- lookups -----------------------------------------------------------

    def list_products(self) -> list[Product]:
        return self.inventory_repo.get_all_products()

    def find_product(self, name: Optional[str]) -> Optional[Product]:
        """Case-insensitive lookup by display name."""
        return find_product_by_name(self.inventory_repo.get_all_products(), name)

    def get_product(self, name: str) -> Product:
        product = self.find_product(name)
        if product is None:
            raise UnknownCatalogReferenceError(name)
        return product

    def get_product_by_id(self, product_id: str) -> Product:
        product = self.inventory_repo.get_product(product_id)
        if product is None:
            raise RecordNotFoundError("Product", product_id)
        return product

    def find_variant(self, product_name: str, variant_name: str) -> Optional[Variant]:
        product = self.find_product(product_name)
        return product.find_variant(variant_name) if product else None

    def get_variant(self, product_name: str, variant_name: str) -> Variant:
        _, variant = resolve_variant(self.inventory_repo, product_name, variant_name)
        return variant

    def find_by_barcode(self, barcode: str) -> Optional[tuple[Product, Variant]]:
        if not barcode or not barcode.strip():
            return None
        return find_barcode_owner(self.inventory_repo.get_all_products(), barcode)

    def snapshot(self) -> list[ProductSnapshotDTO]:
        """Side-effect-free copy of the catalog for rendering."""
        return [snapshot_product(product) for product in self.inventory_repo.get_all_products()]

    # --- product CRUD ------------------------------------------------------

    def _check_barcodes(self, products: list[Product], barcodes: set[str], exclude_variant_id: Optional[str] = None) -> None:
        for code in barcodes:
            owner = find_barcode_owner(products, code, exclude_variant_id=exclude_variant_id)
            if owner is not None:
                product, variant = owner
                raise DuplicateBarcodeError(code, f"{product.name} / {variant.name}")

    def _ensure_category(self, category: Optional[str]) -> str:
        name = clean_name(category) or settings.FALLBACK_CATEGORY
        if name not in self.inventory_repo.get_categories():
            logger.info(f"Registering new category tag '{name}'")
            self.inventory_repo.add_category(name)
        return name

    def add_product(
        self,
        name: str,
        category: Optional[str],
        variants: list[NewVariantSpec],
        min_stock_global: int = 0,
        last_purchase_date: date | str | None = None,
        expiration_date: date | str | None = None,
        price_per_unit: float = 0.0,
    ) -> Product:
        product_name = clean_name(name)
        if not product_name:
            raise ValidationIncompleteError("name")
        if not variants:
            raise ValidationIncompleteError("variants", detail="a product needs at least one variant")

        products = self.inventory_repo.get_all_products()
        if find_product_by_name(products, product_name) is not None:
            raise CatalogConflictError(f"Product '{product_name}' already exists")

        new_variants: list[Variant] = []
        seen_barcodes: set[str] = set()
        for spec in variants:
            variant_name = clean_name(spec.name)
            if not variant_name:
                raise ValidationIncompleteError("variant_name")
            if any(normalize_name(existing.name) == normalize_name(variant_name) for existing in new_variants):
                raise CatalogConflictError(f"Variant '{variant_name}' is listed twice for '{product_name}'")
            barcodes = {code.strip() for code in spec.barcodes if code and code.strip()}
            repeated = barcodes & seen_barcodes
            if repeated:
                raise DuplicateBarcodeError(sorted(repeated)[0], f"{product_name} (another variant)")
            self._check_barcodes(products, barcodes)
            seen_barcodes |= barcodes
            new_variants.append(
                Variant(name=variant_name, on_hand=spec.on_hand, min_stock=spec.min_stock, barcodes=barcodes)
            )

        product = Product(
            name=product_name,
            category=self._ensure_category(category),
            variants=new_variants,
            min_stock_global=min_stock_global,
            last_purchase_date=parse_date(last_purchase_date),
            expiration_date=parse_date(expiration_date),
            price_per_unit=price_per_unit,
        )
        self.inventory_repo.save_product(product)
        logger.info(f"Added product '{product.name}' with {len(new_variants)} variant(s)")
        return product

    def update_product(self, product_id: str, **changes) -> Product:
        """Edits descriptive fields (name, category, pricing, thresholds, dates). Quantities go through the ledger."""
        unknown = set(changes) - _EDITABLE_PRODUCT_FIELDS
        if unknown:
            raise ValueError(f"Fields not editable through the catalog: {', '.join(sorted(unknown))}")

        new_name = None
        if "name" in changes:
            new_name = clean_name(changes["name"])
            if not new_name:
                raise ValidationIncompleteError("name")
        if changes.get("min_stock_global", 0) < 0:
            raise ValueError("Minimum stock cannot be negative.")
        if changes.get("price_per_unit", 0) < 0:
            raise ValueError("Price cannot be negative.")

        with self._editing(product_id, new_name=new_name) as product:
            if new_name is not None:
                clash = self.find_product(new_name)
                if clash is not None and clash.id != product.id:
                    raise CatalogConflictError(f"Product '{new_name}' already exists")
                product.name = new_name
            if "category" in changes:
                product.category = self._ensure_category(changes["category"])
            if "min_stock_global" in changes:
                product.min_stock_global = changes["min_stock_global"]
            if "price_per_unit" in changes:
                product.price_per_unit = changes["price_per_unit"]
            if "last_purchase_date" in changes:
                product.last_purchase_date = parse_date(changes["last_purchase_date"])
            if "expiration_date" in changes:
                product.expiration_date = parse_date(changes["expiration_date"])

            self.inventory_repo.save_product(product)
        return product

    def update_variant(
        self,
        product_id: str,
        variant_id: str,
        name: Optional[str] = None,
        min_stock: Optional[int] = None,
        barcodes: Optional[set[str]] = None,
    ) -> Variant:
        new_name = None
        if name is not None:
            new_name = clean_name(name)
            if not new_name:
                raise ValidationIncompleteError("variant_name")
        if min_stock is not None and min_stock < 0:
            raise ValueError("Minimum stock cannot be negative.")

        with self._editing(product_id, new_variant=new_name) as product:
            variant = product.get_variant_by_id(variant_id)
            if variant is None:
                raise RecordNotFoundError("Variant", variant_id)
            if new_name is not None:
                clash = product.find_variant(new_name)
                if clash is not None and clash.id != variant.id:
                    raise CatalogConflictError(f"Variant '{new_name}' already exists on '{product.name}'")
                variant.name = new_name
            if min_stock is not None:
                variant.min_stock = min_stock
            if barcodes is not None:
                cleaned = {code.strip() for code in barcodes if code and code.strip()}
                self._check_barcodes(self.inventory_repo.get_all_products(), cleaned, exclude_variant_id=variant.id)
                variant.barcodes = cleaned

            self.inventory_repo.save_product(product)
        return variant

    def delete_product(self, product_id: str) -> Product:
        """Unconditional delete. Assignment history keeps its product/variant name snapshots."""
        with self._editing(product_id) as product:
            self.inventory_repo.delete_product(product_id)
        logger.info(f"Deleted product '{product.name}' ({product.total_on_hand()} unit(s) on hand discarded)")
        return product

    def _retag(self, product_id: str, old_category: str, new_category: str) -> bool:
        with self._editing(product_id) as product:
            if product.category != old_category:
                return False
            product.category = new_category
            self.inventory_repo.save_product(product)
        return True

    # --- category tags -----------------------------------------------------

    def list_categories(self) -> list[str]:
        return self.inventory_repo.get_categories()

    def add_category(self, name: str) -> str:
        category = clean_name(name)
        if not category:
            raise ValidationIncompleteError("category")
        if any(normalize_name(existing) == normalize_name(category) for existing in self.list_categories()):
            raise CatalogConflictError(f"Category '{category}' already exists")
        self.inventory_repo.add_category(category)
        return category

    def rename_category_tag(self, old_name: str, new_name: str) -> int:
        """Renames a tag and every product carrying it. Returns the number of products updated."""
        new_category = clean_name(new_name)
        if not new_category:
            raise ValidationIncompleteError("category")
        if old_name not in self.list_categories():
            raise RecordNotFoundError("Category", old_name)

        updated = 0
        for product in self.inventory_repo.get_all_products():
            if product.category == old_name and self._retag(product.id, old_name, new_category):
                updated += 1
        self.inventory_repo.rename_category(old_name, new_category)
        logger.info(f"Renamed category '{old_name}' to '{new_category}' on {updated} product(s)")
        return updated

    def delete_category_tag(self, name: str) -> int:
        """Deletes a tag, moving its products to the fallback category. Returns the number of products moved."""
        fallback = settings.FALLBACK_CATEGORY
        if name == fallback:
            raise CatalogConflictError(f"The fallback category '{fallback}' cannot be deleted")
        if name not in self.list_categories():
            raise RecordNotFoundError("Category", name)

        if fallback not in self.list_categories():
            self.inventory_repo.add_category(fallback)
        moved = 0
        for product in self.inventory_repo.get_all_products():
            if product.category == name and self._retag(product.id, name, fallback):
                moved += 1
        self.inventory_repo.delete_category(name)
        logger.info(f"Deleted category '{name}', {moved} product(s) moved to '{fallback}'")
        return moved
