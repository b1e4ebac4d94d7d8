"""Name- and barcode-based lookups shared by the catalog, the ledger and the bulk engine."""

from typing import Optional

from src.common.exceptions.custom_exceptions import UnknownCatalogReferenceError
from src.common.utils.name_utils import normalize_name
from src.inventory_domain.domain.entities.product import Product
from src.inventory_domain.domain.entities.variant import Variant
from src.inventory_domain.domain.repositories.inventory_repository import IInventoryRepository


def find_product_by_name(products: list[Product], name: Optional[str]) -> Optional[Product]:
    key = normalize_name(name)
    if not key:
        return None
    return next((product for product in products if normalize_name(product.name) == key), None)


def find_product(repo: IInventoryRepository, name: Optional[str]) -> Optional[Product]:
    return find_product_by_name(repo.get_all_products(), name)


def resolve_variant(repo: IInventoryRepository, product_name: str, variant_name: str) -> tuple[Product, Variant]:
    """Returns (product, variant) or raises UnknownCatalogReferenceError."""
    product = find_product(repo, product_name)
    if product is None:
        raise UnknownCatalogReferenceError(product_name)
    variant = product.find_variant(variant_name)
    if variant is None:
        raise UnknownCatalogReferenceError(product.name, variant_name)
    return product, variant


def find_barcode_owner(
    products: list[Product], barcode: str, exclude_variant_id: Optional[str] = None
) -> Optional[tuple[Product, Variant]]:
    code = barcode.strip()
    for product in products:
        for variant in product.variants:
            if variant.id != exclude_variant_id and code in variant.barcodes:
                return product, variant
    return None
