# src/inventory_domain/infrastructure/persistence/mysql_inventory_repository.py
"""MySQL implementation of the inventory repository."""

import logging
from typing import Optional

from mysql.connector import Error

from src.common.exceptions.custom_exceptions import DatabaseError
from src.common.persistence.mysql_base import MySQLRepositoryBase
from src.common.utils.date_utils import format_date_for_db, parse_date
from src.inventory_domain.domain.entities.product import Product
from src.inventory_domain.domain.entities.variant import Variant
from src.inventory_domain.domain.repositories.inventory_repository import IInventoryRepository

logger = logging.getLogger(__name__)


class MySQLInventoryRepository(MySQLRepositoryBase, IInventoryRepository):
    """MySQL implementation of the Inventory Repository. Tables carry the 'inv_' prefix."""

    table_definitions = [
        """
        CREATE TABLE IF NOT EXISTS inv_categories (
            id INT UNSIGNED PRIMARY KEY AUTO_INCREMENT,
            name VARCHAR(255) NOT NULL,
            UNIQUE KEY uk_category_name (name)
        ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;
        """,
        """
        CREATE TABLE IF NOT EXISTS inv_products (
            id CHAR(32) PRIMARY KEY,
            seq BIGINT UNSIGNED NOT NULL AUTO_INCREMENT,
            name VARCHAR(255) NOT NULL,
            category VARCHAR(255) NOT NULL,
            min_stock_global INT UNSIGNED NOT NULL DEFAULT 0,
            last_purchase_date DATE,
            expiration_date DATE,
            price_per_unit DECIMAL(14, 2) NOT NULL DEFAULT 0,
            UNIQUE KEY uk_product_seq (seq),
            INDEX idx_product_category (category)
        ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;
        """,
        """
        CREATE TABLE IF NOT EXISTS inv_variants (
            id CHAR(32) PRIMARY KEY,
            product_id CHAR(32) NOT NULL,
            position INT UNSIGNED NOT NULL DEFAULT 0,
            name VARCHAR(255) NOT NULL,
            on_hand INT UNSIGNED NOT NULL DEFAULT 0,
            in_transit INT UNSIGNED NOT NULL DEFAULT 0,
            min_stock INT UNSIGNED NOT NULL DEFAULT 0,
            UNIQUE KEY uk_variant_product_name (product_id, name),
            CONSTRAINT fk_variant_product FOREIGN KEY (product_id)
                REFERENCES inv_products (id) ON DELETE CASCADE
        ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;
        """,
        """
        CREATE TABLE IF NOT EXISTS inv_variant_barcodes (
            barcode VARCHAR(128) PRIMARY KEY,
            variant_id CHAR(32) NOT NULL,
            CONSTRAINT fk_barcode_variant FOREIGN KEY (variant_id)
                REFERENCES inv_variants (id) ON DELETE CASCADE
        ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;
        """,
    ]

    def _build_products(self, product_rows: list[dict], variant_rows: list[dict], barcode_rows: list[dict]) -> list[Product]:
        barcodes_by_variant: dict[str, set[str]] = {}
        for row in barcode_rows:
            barcodes_by_variant.setdefault(row["variant_id"], set()).add(row["barcode"])

        variants_by_product: dict[str, list[Variant]] = {}
        for row in variant_rows:
            variants_by_product.setdefault(row["product_id"], []).append(
                Variant(
                    id=row["id"],
                    name=row["name"],
                    on_hand=int(row["on_hand"]),
                    in_transit=int(row["in_transit"]),
                    min_stock=int(row["min_stock"]),
                    barcodes=barcodes_by_variant.get(row["id"], set()),
                )
            )

        products: list[Product] = []
        for row in product_rows:
            variants = variants_by_product.get(row["id"])
            if not variants:
                logger.warning(f"Skipping product {row['id']} ({row['name']}) without variants")
                continue
            products.append(
                Product(
                    id=row["id"],
                    name=row["name"],
                    category=row["category"],
                    variants=variants,
                    min_stock_global=int(row["min_stock_global"]),
                    last_purchase_date=parse_date(row["last_purchase_date"]),
                    expiration_date=parse_date(row["expiration_date"]),
                    price_per_unit=float(row["price_per_unit"]),
                )
            )
        return products

    def _fetch_products(self, product_id: Optional[str] = None) -> list[Product]:
        conn = self._get_connection()
        cursor = conn.cursor(dictionary=True)
        where = "WHERE p.id = %s" if product_id else ""
        params = (product_id,) if product_id else ()
        try:
            cursor.execute(
                f"""
                SELECT p.id, p.name, p.category, p.min_stock_global, p.last_purchase_date,
                       p.expiration_date, p.price_per_unit
                FROM inv_products p
                {where}
                ORDER BY p.seq
                """,
                params,
            )
            product_rows = cursor.fetchall()
            cursor.execute(
                f"""
                SELECT v.id, v.product_id, v.name, v.on_hand, v.in_transit, v.min_stock
                FROM inv_variants v
                JOIN inv_products p ON p.id = v.product_id
                {where}
                ORDER BY v.product_id, v.position
                """,
                params,
            )
            variant_rows = cursor.fetchall()
            cursor.execute(
                f"""
                SELECT b.barcode, b.variant_id
                FROM inv_variant_barcodes b
                JOIN inv_variants v ON v.id = b.variant_id
                JOIN inv_products p ON p.id = v.product_id
                {where}
                """,
                params,
            )
            barcode_rows = cursor.fetchall()
            return self._build_products(product_rows, variant_rows, barcode_rows)
        except Error as e:
            raise DatabaseError(f"Error fetching products: {e}", original_exception=e)
        finally:
            cursor.close()

    def get_all_products(self) -> list[Product]:
        return self._fetch_products()

    def get_product(self, product_id: str) -> Optional[Product]:
        products = self._fetch_products(product_id)
        return products[0] if products else None

    def save_product(self, product: Product) -> None:
        """Upserts the product row, its variants and their barcodes in a single transaction."""
        conn = self._get_connection()
        cursor = conn.cursor()

        upsert_product_query = """
        INSERT INTO inv_products
        (id, name, category, min_stock_global, last_purchase_date, expiration_date, price_per_unit)
        VALUES (%s, %s, %s, %s, %s, %s, %s)
        ON DUPLICATE KEY UPDATE
        name = VALUES(name),
        category = VALUES(category),
        min_stock_global = VALUES(min_stock_global),
        last_purchase_date = VALUES(last_purchase_date),
        expiration_date = VALUES(expiration_date),
        price_per_unit = VALUES(price_per_unit)
        """
        upsert_variant_query = """
        INSERT INTO inv_variants
        (id, product_id, position, name, on_hand, in_transit, min_stock)
        VALUES (%s, %s, %s, %s, %s, %s, %s)
        ON DUPLICATE KEY UPDATE
        position = VALUES(position),
        name = VALUES(name),
        on_hand = VALUES(on_hand),
        in_transit = VALUES(in_transit),
        min_stock = VALUES(min_stock)
        """

        variant_ids = [variant.id for variant in product.variants]
        try:
            cursor.execute(
                upsert_product_query,
                (
                    product.id,
                    product.name,
                    product.category,
                    product.min_stock_global,
                    format_date_for_db(product.last_purchase_date),
                    format_date_for_db(product.expiration_date),
                    product.price_per_unit,
                ),
            )
            placeholders = ",".join(["%s"] * len(variant_ids))
            cursor.execute(
                f"DELETE FROM inv_variants WHERE product_id = %s AND id NOT IN ({placeholders})",
                [product.id, *variant_ids],
            )
            cursor.executemany(
                upsert_variant_query,
                [
                    (variant.id, product.id, position, variant.name, variant.on_hand, variant.in_transit, variant.min_stock)
                    for position, variant in enumerate(product.variants)
                ],
            )
            cursor.execute(f"DELETE FROM inv_variant_barcodes WHERE variant_id IN ({placeholders})", variant_ids)
            barcode_params = [(code, variant.id) for variant in product.variants for code in sorted(variant.barcodes)]
            if barcode_params:
                cursor.executemany(
                    "INSERT INTO inv_variant_barcodes (barcode, variant_id) VALUES (%s, %s)", barcode_params
                )
            conn.commit()
        except Error as e:
            conn.rollback()
            raise DatabaseError(f"Error saving product {product.name}: {e}", original_exception=e)
        finally:
            cursor.close()

    def delete_product(self, product_id: str) -> bool:
        deleted = self._execute_write(
            "DELETE FROM inv_products WHERE id = %s", (product_id,), f"Error deleting product {product_id}"
        )
        return deleted > 0

    def get_categories(self) -> list[str]:
        rows = self._fetch_all("SELECT name FROM inv_categories ORDER BY id", (), "Error fetching categories")
        return [row["name"] for row in rows]

    def add_category(self, name: str) -> None:
        self._execute_write("INSERT IGNORE INTO inv_categories (name) VALUES (%s)", (name,), f"Error adding category {name}")

    def rename_category(self, old_name: str, new_name: str) -> None:
        conn = self._get_connection()
        cursor = conn.cursor()
        try:
            cursor.execute("SELECT COUNT(*) FROM inv_categories WHERE name = %s", (new_name,))
            (existing,) = cursor.fetchone()
            if existing:
                # Renaming onto an existing tag collapses the two
                cursor.execute("DELETE FROM inv_categories WHERE name = %s", (old_name,))
            else:
                cursor.execute("UPDATE inv_categories SET name = %s WHERE name = %s", (new_name, old_name))
            conn.commit()
        except Error as e:
            conn.rollback()
            raise DatabaseError(f"Error renaming category {old_name}: {e}", original_exception=e)
        finally:
            cursor.close()

    def delete_category(self, name: str) -> None:
        self._execute_write("DELETE FROM inv_categories WHERE name = %s", (name,), f"Error deleting category {name}")
