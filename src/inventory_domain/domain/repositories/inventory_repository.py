# src/inventory_domain/domain/repositories/inventory_repository.py
"""Inventory (products, variants, category tags) repository interface."""
from abc import ABC, abstractmethod
from typing import Optional

from src.inventory_domain.domain.entities.product import Product


class IInventoryRepository(ABC):

    @abstractmethod
    def get_all_products(self) -> list[Product]:
        """Returns every product in catalog order."""
        pass

    @abstractmethod
    def get_product(self, product_id: str) -> Optional[Product]:
        """Retrieves a product by its stable id."""
        pass

    @abstractmethod
    def save_product(self, product: Product) -> None:
        """Inserts or updates a product together with its variants and barcodes."""
        pass

    @abstractmethod
    def delete_product(self, product_id: str) -> bool:
        """Removes a product; returns False if it did not exist."""
        pass

    @abstractmethod
    def get_categories(self) -> list[str]:
        """Returns the managed high-level category tags."""
        pass

    @abstractmethod
    def add_category(self, name: str) -> None:
        pass

    @abstractmethod
    def rename_category(self, old_name: str, new_name: str) -> None:
        pass

    @abstractmethod
    def delete_category(self, name: str) -> None:
        pass

    def close(self) -> None:
        """Releases any held resources."""
        pass
