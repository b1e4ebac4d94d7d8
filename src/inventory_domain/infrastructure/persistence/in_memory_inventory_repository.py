"""In-process implementation of the inventory repository (the default store)."""

import copy
import threading
from typing import Optional

from src.inventory_domain.domain.entities.product import Product
from src.inventory_domain.domain.repositories.inventory_repository import IInventoryRepository


class InMemoryInventoryRepository(IInventoryRepository):
    """Keeps products and category tags in dicts; callers always get detached copies."""

    def __init__(self, categories: Optional[list[str]] = None) -> None:
        self._products: dict[str, Product] = {}
        self._categories: list[str] = list(categories or [])
        self._lock = threading.Lock()

    def get_all_products(self) -> list[Product]:
        with self._lock:
            return [copy.deepcopy(product) for product in self._products.values()]

    def get_product(self, product_id: str) -> Optional[Product]:
        with self._lock:
            product = self._products.get(product_id)
            return copy.deepcopy(product) if product else None

    def save_product(self, product: Product) -> None:
        with self._lock:
            self._products[product.id] = copy.deepcopy(product)

    def delete_product(self, product_id: str) -> bool:
        with self._lock:
            return self._products.pop(product_id, None) is not None

    def get_categories(self) -> list[str]:
        with self._lock:
            return list(self._categories)

    def add_category(self, name: str) -> None:
        with self._lock:
            if name not in self._categories:
                self._categories.append(name)

    def rename_category(self, old_name: str, new_name: str) -> None:
        with self._lock:
            self._categories = [new_name if name == old_name else name for name in self._categories]
            # Renaming onto an existing tag collapses the two
            deduped: list[str] = []
            for name in self._categories:
                if name not in deduped:
                    deduped.append(name)
            self._categories = deduped

    def delete_category(self, name: str) -> None:
        with self._lock:
            self._categories = [existing for existing in self._categories if existing != name]
